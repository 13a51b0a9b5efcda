"""Tool registry for the OpenAPI MCP Adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .errors import ToolNotFoundError
from .models import ToolDefinition
from .schema import SchemaDeriver


logger = logging.getLogger(__name__)


class ToolRegistry:
    def __init__(self, tools: Optional[Iterable[ToolDefinition]] = None) -> None:
        self._tools: Dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.register(tool)

    @classmethod
    def from_spec(
        cls, spec: Dict[str, Any], deriver: Optional[SchemaDeriver] = None
    ) -> "ToolRegistry":
        deriver = deriver or SchemaDeriver()
        registry = cls(deriver.derive(spec))
        logger.info("Derived %s tools from OpenAPI spec", len(registry))
        return registry

    def register(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            logger.warning("Tool name collision, replacing earlier definition: %s", tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolDefinition:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def list_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
