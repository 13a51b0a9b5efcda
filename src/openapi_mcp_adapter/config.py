"""Configuration for the OpenAPI MCP Adapter."""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

DEFAULTS_PREFIX = "DEFAULT_"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    server_name: str = Field(default="openapi-mcp-server")
    server_version: str = Field(default="1.0.0")

    openapi_spec_path: Optional[str] = Field(default=None)
    api_base_url: Optional[str] = Field(default=None)
    api_headers: Optional[str] = Field(default=None)
    bearer_token: Optional[str] = Field(default=None)
    agent_id: Optional[str] = Field(default=None)
    api_timeout_seconds: float = Field(default=30)
    api_max_retries: int = Field(default=0)

    spec_cache_dir: str = Field(default=".cache")
    spec_cache_seconds: int = Field(default=3600)
    spec_fetch_timeout_seconds: float = Field(default=30)
    spec_fetch_attempts: int = Field(default=3)

    adapter_transport: str = Field(default="stdio")
    adapter_host: str = Field(default="0.0.0.0")
    adapter_port: int = Field(default=8000)
    adapter_max_concurrency: int = Field(default=20)

    adapter_log_level: str = Field(default="INFO")
    adapter_log_file: Optional[str] = Field(default=None)

    def request_headers(self) -> Dict[str, str]:
        header_str = self.api_headers
        if self.bearer_token:
            header_str = f"Authorization:Bearer {self.bearer_token}"
        return parse_headers(header_str)

    def request_defaults(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        defaults = parse_environment_defaults(os.environ if environ is None else environ)
        if self.agent_id:
            defaults["agentId"] = self.agent_id
        return defaults


def parse_headers(header_str: Optional[str]) -> Dict[str, str]:
    """Parse ``Name:Value,Name2:Value2`` into a header mapping.

    ``Content-Type: application/json`` is always set.
    """
    headers: Dict[str, str] = {}
    if header_str:
        cleaned = header_str.strip().strip('"').strip()
        for item in cleaned.split(","):
            key, _, value = item.partition(":")
            if key.strip() and value.strip():
                headers[key.strip()] = value.strip()
    headers["Content-Type"] = "application/json"
    return headers


def parse_environment_defaults(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect ``DEFAULT_*`` variables into a request-body defaults mapping.

    Values that look like JSON objects or arrays are decoded; anything else,
    including JSON that fails to parse, is kept as the literal string.
    """
    defaults: Dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(DEFAULTS_PREFIX):
            continue
        name = key[len(DEFAULTS_PREFIX):]
        parsed: Any = value
        if value.startswith("{") or value.startswith("["):
            try:
                parsed = json.loads(value)
            except ValueError as exc:
                logger.warning("Failed to parse JSON value for %s: %s", key, exc)
        defaults[name] = parsed
    return defaults


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
