"""Core adapter service logic."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .errors import ExecutionError, StreamProcessingError
from .executors import RestExecutor
from .logging import redact_payload
from .models import ToolDefinition
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolService:
    """
    Invocation boundary between the MCP layer and the REST upstream.

    Unknown tool names raise ``ToolNotFoundError``. Failures of the upstream
    call itself are reported back to the caller as an error result so that a
    single bad call never takes the server down.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        executor: RestExecutor,
        max_concurrency: int = 20,
    ) -> None:
        self.registry = registry
        self.executor = executor
        self.semaphore = asyncio.Semaphore(max_concurrency)

    def list_tools(self) -> List[ToolDefinition]:
        return self.registry.list_tools()

    async def call_tool(
        self, name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        tool = self.registry.get(name)
        arguments = arguments or {}

        async with self.semaphore:
            logger.info("Executing tool=%s arguments=%s", name, redact_payload(arguments))
            try:
                return await self.executor.execute(tool, arguments)
            except (ExecutionError, StreamProcessingError) as exc:
                logger.error("Tool execution failed: tool=%s error=%s", name, exc)
                return self._format_error(name, exc)

    def _format_error(self, name: str, exc: Exception) -> Dict[str, Any]:
        message = f"Error executing tool {name}: {exc}"
        return {"content": [{"type": "text", "text": message}], "isError": True}
