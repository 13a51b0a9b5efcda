"""MCP server setup for the OpenAPI MCP Adapter."""

import logging
from typing import Any, Dict, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import Field

from .config import Settings
from .errors import ConfigurationError
from .executors import RestExecutor
from .models import ToolDefinition
from .openapi import SpecLoader
from .service import ToolService
from .spec_cache import SpecCache
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


class OpenAPITool(Tool):
    """Publishes a derived tool with its flattened schema as-is."""

    service: Any = Field(exclude=True)

    @classmethod
    def from_definition(cls, definition: ToolDefinition, service: ToolService) -> "OpenAPITool":
        return cls(
            name=definition.name,
            description=definition.description,
            parameters=definition.input_schema,
            service=service,
        )

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        result = await self.service.call_tool(self.name, arguments)
        texts = [block.get("text", "") for block in result.get("content", [])]
        if result.get("isError"):
            raise ToolError("\n".join(texts))
        return ToolResult(content=[TextContent(type="text", text=text) for text in texts])


async def build_server(
    settings: Settings,
    loader: Optional[SpecLoader] = None,
    executor: Optional[RestExecutor] = None,
) -> tuple[FastMCP, object | None, ToolService]:
    if not settings.openapi_spec_path:
        raise ConfigurationError("OpenAPI spec is required (OPENAPI_SPEC_PATH)")

    loader = loader or SpecLoader(
        cache=SpecCache(settings.spec_cache_dir, settings.spec_cache_seconds),
        max_attempts=settings.spec_fetch_attempts,
        timeout_seconds=settings.spec_fetch_timeout_seconds,
    )
    spec = await loader.load(settings.openapi_spec_path)
    registry = ToolRegistry.from_spec(spec)

    if executor is None:
        base_url = settings.api_base_url or _extract_server_url(spec)
        if not base_url:
            raise ConfigurationError("API base URL is required (API_BASE_URL)")
        defaults = settings.request_defaults()
        logger.info("Environment defaults: %s", sorted(defaults))
        executor = RestExecutor(
            base_url=base_url,
            headers=settings.request_headers(),
            defaults=defaults,
            timeout_seconds=settings.api_timeout_seconds,
            max_retries=settings.api_max_retries,
        )
    service = ToolService(registry, executor, max_concurrency=settings.adapter_max_concurrency)

    mcp = FastMCP(settings.server_name, instructions=_instructions(), version=settings.server_version)
    app = _get_http_app(mcp, settings)
    _attach_healthcheck(app)

    for definition in service.list_tools():
        mcp.add_tool(OpenAPITool.from_definition(definition, service))
        logger.info(
            "Registered tool: %s for %s %s",
            definition.name,
            definition.metadata.http_method if definition.metadata else "?",
            definition.metadata.original_path if definition.metadata else "?",
        )

    return mcp, app, service


def _extract_server_url(spec: Dict[str, Any]) -> Optional[str]:
    servers = spec.get("servers") or []
    if not servers:
        return None
    server = servers[0]
    if isinstance(server, dict):
        return server.get("url")
    return None


def _attach_healthcheck(app) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return

    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        from starlette.responses import JSONResponse

        return JSONResponse({"status": "ok"})

    app.add_route("/health", healthcheck, methods=["GET"])


def _instructions() -> str:
    return (
        "OpenAPI MCP Adapter. "
        "Each tool maps to one operation of the configured OpenAPI document and proxies to its REST API."
    )


def _get_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    transport = settings.adapter_transport.lower()
    if transport in {"http"}:
        app = mcp.http_app(transport="http", stateless_http=True, json_response=True)
        _attach_cors(app)
        return app
    if transport in {"streamable-http", "streamablehttp"}:
        app = mcp.http_app(
            transport="streamable-http", stateless_http=True, json_response=True
        )
        _attach_cors(app)
        return app
    if transport in {"sse"}:
        app = mcp.http_app(transport="sse")
        _attach_cors(app)
        return app
    return None


def _attach_cors(app) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return
    from starlette.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
