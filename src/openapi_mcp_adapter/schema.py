"""Derive MCP tool definitions from OpenAPI operations."""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import OperationMetadata, ParameterDescriptor, ToolDefinition


logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
SCHEMA_TYPES = frozenset({"string", "number", "integer", "boolean", "object", "array"})


class SchemaDeriver:
    """Builds one or more :class:`ToolDefinition` per OpenAPI operation.

    Parameters and top-level request-body properties share a single flat input
    schema. The request-body schema itself is kept on the operation metadata so
    that call arguments can be folded back into a nested body later.
    """

    def derive(self, spec: Dict[str, Any]) -> List[ToolDefinition]:
        tools: List[ToolDefinition] = []
        for path, path_item in (spec.get("paths") or {}).items():
            if not isinstance(path_item, dict) or _is_reference(path_item):
                logger.debug("Skipping path without inline operations: %s", path)
                continue
            shared_parameters = path_item.get("parameters") or []
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict) or _is_reference(operation):
                    continue
                try:
                    tools.extend(self._derive_operation(path, method, operation, shared_parameters))
                except Exception as exc:
                    logger.warning("Skipping %s %s: %s", method.upper(), path, exc)
        return tools

    def _derive_operation(
        self,
        path: str,
        method: str,
        operation: Dict[str, Any],
        shared_parameters: List[Any],
    ) -> List[ToolDefinition]:
        input_schema: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}

        parameters = self._collect_parameters(
            [*shared_parameters, *(operation.get("parameters") or [])]
        )
        for parameter in parameters:
            self._add_parameter(parameter, input_schema)

        body_schema = self._extract_body_schema(operation.get("requestBody"))
        if body_schema is not None:
            self._add_request_body(body_schema, input_schema)

        _clean_schema(input_schema)

        metadata = OperationMetadata(
            http_method=method.upper(),
            original_path=path,
            parameters=tuple(parameters),
            request_body_schema=body_schema,
        )
        return [
            ToolDefinition(
                name=name,
                description=description,
                input_schema=input_schema,
                metadata=metadata,
            )
            for name, description in self._tool_variants(path, method, operation)
        ]

    def _collect_parameters(self, raw_parameters: Iterable[Any]) -> List[ParameterDescriptor]:
        by_name: Dict[str, ParameterDescriptor] = {}
        for parameter in raw_parameters:
            if not isinstance(parameter, dict) or _is_reference(parameter):
                continue
            name = parameter.get("name")
            if not name:
                continue
            schema = parameter.get("schema")
            by_name[name] = ParameterDescriptor(
                name=name,
                location=parameter.get("in", "query"),
                required=bool(parameter.get("required", False)),
                schema_type=_schema_type(schema if isinstance(schema, dict) else {}),
                description=parameter.get("description"),
            )
        return list(by_name.values())

    def _add_parameter(self, parameter: ParameterDescriptor, schema: Dict[str, Any]) -> None:
        # array parameters deliberately carry no "items" here
        schema["properties"][parameter.name] = {
            "type": parameter.schema_type,
            "description": parameter.description or f"{parameter.name} parameter",
        }
        if parameter.required and parameter.name not in schema["required"]:
            schema["required"].append(parameter.name)

    def _extract_body_schema(self, request_body: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(request_body, dict) or _is_reference(request_body):
            return None
        content = request_body.get("content")
        if not isinstance(content, dict) or not content:
            return None
        media = next(iter(content.values()))
        schema = media.get("schema") if isinstance(media, dict) else None
        if not isinstance(schema, dict) or _is_reference(schema):
            return None
        return schema

    def _add_request_body(self, body_schema: Dict[str, Any], schema: Dict[str, Any]) -> None:
        body_required = body_schema.get("required") or []
        for prop_name, prop_schema in (body_schema.get("properties") or {}).items():
            if not isinstance(prop_schema, dict) or _is_reference(prop_schema):
                continue
            prop = copy.deepcopy(prop_schema)
            prop["type"] = _schema_type(prop_schema)
            prop.setdefault("description", f"{prop_name} parameter")
            schema["properties"][prop_name] = prop
            if prop_name in body_required and prop_name not in schema["required"]:
                schema["required"].append(prop_name)

    def _tool_variants(
        self, path: str, method: str, operation: Dict[str, Any]
    ) -> List[Tuple[str, str]]:
        summary = operation.get("summary") or ""
        description = operation.get("description") or ""
        operation_id = operation.get("operationId") or _fallback_operation_id(method, path)

        if "|" not in summary and "|" not in description:
            text = summary or description or f"{method.upper()} {path}"
            return [(operation_id, text)]

        names = _split_segments(summary)
        descriptions = _split_segments(description)
        if not names and not descriptions:
            return [(operation_id, f"{method.upper()} {path}")]
        count = max(len(names), len(descriptions))
        variants: List[Tuple[str, str]] = []
        for index in range(count):
            name = names[index % len(names)] if names else f"{operation_id}_{index + 1}"
            text = descriptions[index % len(descriptions)] if descriptions else name
            variants.append((name, text))
        return variants


def _is_reference(node: Dict[str, Any]) -> bool:
    return "$ref" in node


def _schema_type(schema: Dict[str, Any]) -> str:
    schema_type = schema.get("type")
    if isinstance(schema_type, str) and schema_type in SCHEMA_TYPES:
        return schema_type
    if isinstance(schema.get("properties"), dict):
        return "object"
    if isinstance(schema.get("items"), dict):
        return "array"
    return "string"


def _clean_schema(schema: Dict[str, Any]) -> None:
    if not schema.get("properties"):
        schema.pop("properties", None)
    if not schema.get("required"):
        schema.pop("required", None)


def _split_segments(text: str) -> List[str]:
    return [segment.strip() for segment in text.split("|") if segment.strip()]


def _fallback_operation_id(method: str, path: str) -> str:
    sanitized = re.sub(r"[{}]", "", path.strip("/")).replace("/", "_")
    return f"{method}_{sanitized or 'root'}"
