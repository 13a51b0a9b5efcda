"""OpenAPI spec loader with file, inline and remote sources."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx
import yaml

from .errors import InvalidSpecError, SpecFetchError, SpecNotFoundError, SpecParseError
from .spec_cache import CacheEntry, SpecCache


logger = logging.getLogger(__name__)

SpecSource = Union[str, Path, Dict[str, Any]]


class SpecLoader:
    def __init__(
        self,
        cache: Optional[SpecCache] = None,
        max_attempts: int = 3,
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.cache = cache
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._sleep = sleep

    async def load(self, source: SpecSource) -> Dict[str, Any]:
        if isinstance(source, dict):
            logger.info("Using provided OpenAPI spec object")
            spec = source
        elif isinstance(source, str) and source.startswith(("http://", "https://")):
            spec = await self._load_url(source)
        elif source:
            spec = self._load_file(Path(source))
        else:
            raise SpecNotFoundError("No OpenAPI spec provided")

        validate_spec(spec)
        logger.info("Loaded OpenAPI spec with %s paths", len(spec["paths"]))
        return spec

    def _load_file(self, path: Path) -> Dict[str, Any]:
        resolved = (Path.cwd() / path).resolve()
        logger.info("Loading OpenAPI spec from: %s", resolved)
        if not resolved.exists():
            raise SpecNotFoundError(f"OpenAPI spec file not found: {resolved}")

        content = resolved.read_text(encoding="utf-8")
        logger.debug("Read %s bytes from %s", len(content), resolved)
        try:
            if resolved.suffix.lower() in {".yaml", ".yml"}:
                return yaml.safe_load(content)
            return json.loads(content)
        except (ValueError, yaml.YAMLError) as exc:
            raise SpecParseError(f"Failed to parse OpenAPI spec {resolved}: {exc}") from exc

    async def _load_url(self, url: str) -> Dict[str, Any]:
        cached: Optional[CacheEntry] = None
        if self.cache is not None:
            cached = await asyncio.to_thread(self.cache.get, url)

        headers: Dict[str, str] = {}
        if cached and cached.etag:
            headers["If-None-Match"] = cached.etag

        attempt = 0
        while True:
            attempt += 1
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds, transport=self._transport
                ) as client:
                    response = await client.get(url, headers=headers)
                if response.status_code == 304:
                    if cached is None:
                        raise SpecFetchError(
                            f"Server returned 304 Not Modified for {url} but no cached spec exists"
                        )
                    logger.info("OpenAPI spec not modified, using cached copy: %s", url)
                    return cached.content
                response.raise_for_status()
                break
            except SpecFetchError:
                raise
            except Exception as exc:
                if attempt >= self.max_attempts:
                    raise SpecFetchError(
                        f"Failed to fetch OpenAPI spec {url} after {attempt} attempts: {exc}"
                    ) from exc
                backoff = min(2 ** (attempt - 1), 5)
                logger.warning(
                    "OpenAPI spec fetch failed (attempt %s/%s). Retrying in %ss. url=%s error=%s",
                    attempt,
                    self.max_attempts,
                    backoff,
                    url,
                    exc,
                )
                await self._sleep(backoff)

        spec = parse_spec_text(response.text, source=url)
        if self.cache is not None:
            try:
                await asyncio.to_thread(self.cache.put, url, spec, response.headers.get("etag"))
            except Exception as exc:
                logger.warning("Failed to cache OpenAPI spec %s: %s", url, exc)
        return spec


def parse_spec_text(text: str, source: str = "<memory>") -> Dict[str, Any]:
    """Parse a document as JSON, falling back to YAML."""
    try:
        return json.loads(text)
    except ValueError:
        pass
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SpecParseError(f"OpenAPI spec from {source} is neither JSON nor YAML: {exc}") from exc


def validate_spec(spec: Any) -> None:
    if spec is None:
        raise InvalidSpecError("OpenAPI spec is undefined or null")
    if not isinstance(spec, dict):
        raise InvalidSpecError(f"OpenAPI spec must be a mapping, got {type(spec).__name__}")
    if not isinstance(spec.get("paths"), dict):
        raise InvalidSpecError("OpenAPI spec does not contain paths property")
