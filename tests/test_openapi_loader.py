"""Tests for loading OpenAPI documents from files, objects and URLs."""

from __future__ import annotations

import json

import httpx
import pytest

from openapi_mcp_adapter.errors import (
    InvalidSpecError,
    SpecFetchError,
    SpecNotFoundError,
    SpecParseError,
)
from openapi_mcp_adapter.openapi import SpecLoader, parse_spec_text, validate_spec
from openapi_mcp_adapter.spec_cache import SpecCache


URL = "https://api.example.com/openapi.json"


@pytest.mark.asyncio
async def test_inline_document_is_returned_unchanged(translation_spec):
    loaded = await SpecLoader().load(translation_spec)
    assert loaded is translation_spec


@pytest.mark.asyncio
async def test_loads_yaml_file_relative_to_cwd(tmp_path, monkeypatch, translation_yaml):
    (tmp_path / "openapi.yml").write_text(translation_yaml)
    monkeypatch.chdir(tmp_path)

    spec = await SpecLoader().load("openapi.yml")

    assert "/service_run_stream" in spec["paths"]


@pytest.mark.asyncio
async def test_loads_json_file(tmp_path, translation_spec):
    path = tmp_path / "openapi.json"
    path.write_text(json.dumps(translation_spec))

    spec = await SpecLoader().load(str(path))

    assert spec == translation_spec


@pytest.mark.asyncio
async def test_missing_file_raises_not_found(tmp_path):
    with pytest.raises(SpecNotFoundError):
        await SpecLoader().load(str(tmp_path / "missing.yaml"))


@pytest.mark.asyncio
async def test_unparseable_json_file_raises_parse_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{broken")
    with pytest.raises(SpecParseError):
        await SpecLoader().load(str(path))


@pytest.mark.asyncio
async def test_document_without_paths_is_invalid():
    with pytest.raises(InvalidSpecError):
        await SpecLoader().load({"openapi": "3.0.0", "info": {}})


def test_validate_spec_rejects_null_document():
    with pytest.raises(InvalidSpecError):
        validate_spec(None)


def test_parse_spec_text_falls_back_to_yaml(translation_yaml):
    assert parse_spec_text('{"paths": {}}') == {"paths": {}}
    assert "paths" in parse_spec_text(translation_yaml)
    with pytest.raises(SpecParseError):
        parse_spec_text("key: [unclosed")


@pytest.mark.asyncio
async def test_remote_fetch_populates_cache_with_etag(tmp_path, translation_spec):
    def handler(request: httpx.Request) -> httpx.Response:
        assert "if-none-match" not in request.headers
        return httpx.Response(200, json=translation_spec, headers={"ETag": '"v1"'})

    cache = SpecCache(tmp_path)
    loader = SpecLoader(cache=cache, transport=httpx.MockTransport(handler))

    spec = await loader.load(URL)

    assert spec == translation_spec
    entry = cache.get(URL)
    assert entry is not None
    assert entry.etag == '"v1"'
    assert entry.content == translation_spec


@pytest.mark.asyncio
async def test_remote_yaml_body_is_accepted(translation_yaml):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=translation_yaml))
    spec = await SpecLoader(transport=transport).load(URL)
    assert "/service_run_stream" in spec["paths"]


@pytest.mark.asyncio
async def test_not_modified_returns_cached_content(tmp_path, translation_spec):
    cache = SpecCache(tmp_path)
    cache.put(URL, translation_spec, etag='"v1"')
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("if-none-match"))
        return httpx.Response(304)

    loader = SpecLoader(cache=cache, transport=httpx.MockTransport(handler))
    spec = await loader.load(URL)

    assert spec == translation_spec
    assert seen == ['"v1"']


@pytest.mark.asyncio
async def test_not_modified_without_cache_is_fatal(tmp_path, no_sleep):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(304)

    loader = SpecLoader(
        cache=SpecCache(tmp_path), transport=httpx.MockTransport(handler), sleep=no_sleep
    )
    with pytest.raises(SpecFetchError):
        await loader.load(URL)
    assert len(calls) == 1
    assert no_sleep.delays == []


@pytest.mark.asyncio
async def test_retries_with_backoff_then_succeeds(translation_spec, no_sleep):
    responses = iter([httpx.Response(500), httpx.Response(503), httpx.Response(200, json=translation_spec)])
    loader = SpecLoader(
        transport=httpx.MockTransport(lambda request: next(responses)), sleep=no_sleep
    )

    spec = await loader.load(URL)

    assert spec == translation_spec
    assert no_sleep.delays == [1, 2]


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(no_sleep):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    loader = SpecLoader(transport=httpx.MockTransport(handler), sleep=no_sleep)
    with pytest.raises(SpecFetchError):
        await loader.load(URL)
    assert len(calls) == 3
    assert no_sleep.delays == [1, 2]


@pytest.mark.asyncio
async def test_cache_write_failure_is_not_propagated(tmp_path, translation_spec):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=translation_spec))
    loader = SpecLoader(cache=SpecCache(blocker / "cache"), transport=transport)

    assert await loader.load(URL) == translation_spec
