"""Rebuild nested request bodies from flattened tool arguments."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .logging import redact_payload
from .models import ToolDefinition


logger = logging.getLogger(__name__)


def build_request_body(
    args: Mapping[str, Any],
    tool: ToolDefinition,
    defaults: Mapping[str, Any],
) -> Dict[str, Any]:
    """Return the JSON body for ``tool`` from call arguments.

    Arguments may address nested body fields either flattened (``params_lang``)
    or nested (``{"params": {"lang": ...}}``). When the tool carries the
    request-body schema it drives the reconstruction; otherwise keys are split
    on their first underscore. Environment defaults then fill whatever is still
    unset.
    """
    body_schema = tool.metadata.request_body_schema if tool.metadata else None
    if body_schema:
        body = _build_with_schema(args, body_schema)
    else:
        body = _build_generic(args)

    apply_environment_defaults(body, defaults)
    logger.debug("Final request body for %s: %s", tool.name, redact_payload(body))
    return body


def apply_environment_defaults(body: Dict[str, Any], defaults: Mapping[str, Any]) -> None:
    """Fill unset keys of ``body`` in place; present values are never replaced."""
    for key, default in defaults.items():
        if isinstance(default, Mapping):
            current = body.get(key)
            if current is None:
                current = body[key] = {}
            elif not isinstance(current, dict):
                continue
            apply_environment_defaults(current, default)
        elif body.get(key) is None:
            body[key] = default


def _build_with_schema(args: Mapping[str, Any], schema: Mapping[str, Any]) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    for prop_name, prop_schema in (schema.get("properties") or {}).items():
        if not isinstance(prop_schema, Mapping):
            prop_schema = {}
        nested = prop_schema.get("properties")
        if prop_schema.get("type") == "object" and isinstance(nested, Mapping) and nested:
            target = body.setdefault(prop_name, {})
            supplied = args.get(prop_name)
            for child in nested:
                flat_key = f"{prop_name}_{child}"
                if flat_key in args:
                    target[child] = args[flat_key]
                elif isinstance(supplied, Mapping) and child in supplied:
                    target[child] = supplied[child]
        elif prop_name in args:
            body[prop_name] = args[prop_name]
    return body


def _build_generic(args: Mapping[str, Any]) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    for key, value in args.items():
        if "_" in key:
            parent, child = key.split("_", 1)
            if not isinstance(body.get(parent), dict):
                body[parent] = {}
            body[parent][child] = value
        else:
            body[key] = value
    return body
