"""Execution layer for REST tool calls."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from .errors import ExecutionError
from .logging import redact_payload, truncate
from .models import ToolDefinition
from .request_builder import build_request_body
from .streaming import StreamAggregator

logger = logging.getLogger(__name__)

QUERY_METHODS = frozenset({"GET", "DELETE"})


class RestExecutor:
    def __init__(
        self,
        base_url: str,
        headers: Optional[Mapping[str, str]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        timeout_seconds: float = 30,
        max_retries: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        aggregator: Optional[StreamAggregator] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url
        self.headers = dict(headers or {"Content-Type": "application/json"})
        self.defaults = dict(defaults or {})
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.aggregator = aggregator or StreamAggregator()
        self._transport = transport
        self._sleep = sleep

    async def execute(self, tool: ToolDefinition, arguments: Dict[str, Any]) -> Dict[str, Any]:
        metadata = tool.metadata
        if metadata is None or not metadata.http_method or not metadata.original_path:
            raise ExecutionError(f"Tool {tool.name} is missing metadata or method or originalPath")

        url, used_keys = self._build_url(metadata.original_path, arguments)
        remaining = {key: value for key, value in arguments.items() if key not in used_keys}
        method = metadata.http_method.upper()

        params: Optional[Dict[str, str]] = None
        body: Optional[Dict[str, Any]] = None
        if method in QUERY_METHODS:
            params = self._extract_query_params(remaining)
        else:
            body = build_request_body(remaining, tool, self.defaults)

        logger.info(
            "Sending %s %s for tool=%s headers=%s params=%s body=%s",
            method,
            url,
            tool.name,
            redact_payload(self.headers),
            params,
            redact_payload(body or {}),
        )

        attempt = 0
        while True:
            attempt += 1
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds, transport=self._transport
                ) as client:
                    response = await client.request(
                        method,
                        url,
                        headers=self.headers,
                        params=params,
                        json=body,
                    )
                response.raise_for_status()
                break
            except Exception as exc:
                if isinstance(exc, httpx.HTTPStatusError):
                    logger.warning(
                        "HTTP %s from %s for tool=%s: %s",
                        exc.response.status_code,
                        url,
                        tool.name,
                        truncate(exc.response.text),
                    )
                if attempt > self.max_retries:
                    raise ExecutionError(f"Failed to execute tool {tool.name}: {exc}") from exc
                await self._backoff(attempt, tool)

        logger.info("Status code: %s", response.status_code)
        logger.debug("Response data: %s", truncate(response.text))

        if "text/event-stream" in response.headers.get("content-type", ""):
            fragments = self.aggregator.aggregate(response.content)
            return self.aggregator.to_message(fragments)

        return {
            "content": [{"type": "text", "text": json.dumps(self._response_data(response))}],
            "id": tool.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def _backoff(self, attempt: int, tool: ToolDefinition) -> None:
        backoff = min(2 ** attempt, 6)
        logger.warning(
            "REST call failed (attempt %s/%s). Retrying in %ss. tool=%s",
            attempt,
            self.max_retries,
            backoff,
            tool.name,
        )
        await self._sleep(backoff)

    def _build_url(self, path: str, arguments: Dict[str, Any]) -> tuple[str, set[str]]:
        url = self.base_url.rstrip("/") + path
        used_keys: set[str] = set()
        for key, value in arguments.items():
            token = f"{{{key}}}"
            if token in url:
                url = url.replace(token, str(value))
                used_keys.add(key)
        return url, used_keys

    def _extract_query_params(self, arguments: Dict[str, Any]) -> Dict[str, str]:
        query: Dict[str, str] = {}
        for key, value in arguments.items():
            if isinstance(value, (str, int, float, bool)):
                query[key] = str(value)
        return query

    def _response_data(self, response: httpx.Response) -> Any:
        if not response.content:
            return {"status": "ok"}
        try:
            return response.json()
        except ValueError:
            return response.text
