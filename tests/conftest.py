"""Shared fixtures for adapter tests."""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest


TRANSLATION_SPEC: Dict[str, Any] = {
    "openapi": "3.0.0",
    "info": {"title": "Translation Service API", "version": "1.0.0"},
    "servers": [{"url": "http://127.0.0.1:8888"}],
    "paths": {
        "/service_run_stream": {
            "post": {
                "summary": "Run a translation service",
                "operationId": "runTranslationService",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "required": ["service_id", "params"],
                                "properties": {
                                    "service_id": {
                                        "type": "string",
                                        "description": "Service identifier",
                                    },
                                    "params": {
                                        "type": "object",
                                        "required": ["source_lang", "target_lang", "source_text"],
                                        "properties": {
                                            "source_lang": {"type": "string"},
                                            "target_lang": {"type": "string"},
                                            "source_text": {"type": "string"},
                                        },
                                    },
                                },
                            }
                        }
                    },
                },
            }
        },
        "/items/{item_id}": {
            "parameters": [
                {"name": "item_id", "in": "path", "required": True, "schema": {"type": "integer"}}
            ],
            "get": {
                "operationId": "getItem",
                "description": "Fetch one item",
                "parameters": [
                    {"name": "verbose", "in": "query", "schema": {"type": "boolean"}},
                    {"name": "tags", "in": "query", "schema": {"type": "array", "items": {"type": "string"}}},
                ],
            },
            "delete": {"operationId": "deleteItem"},
        },
        "/health": {"get": {}},
    },
}

TRANSLATION_YAML = """\
openapi: 3.0.0
info:
  title: Translation Service API
  version: 1.0.0
paths:
  /service_run_stream:
    post:
      summary: Run a translation service
      operationId: runTranslationService
      requestBody:
        content:
          application/json:
            schema:
              type: object
              properties:
                service_id:
                  type: string
"""


@pytest.fixture
def translation_spec() -> Dict[str, Any]:
    return copy.deepcopy(TRANSLATION_SPEC)


@pytest.fixture
def translation_yaml() -> str:
    return TRANSLATION_YAML


@pytest.fixture
def no_sleep():
    delays = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep
