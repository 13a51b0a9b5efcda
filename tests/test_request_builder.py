"""Tests for reconstructing request bodies from tool arguments."""

from __future__ import annotations

import pytest

from openapi_mcp_adapter.models import OperationMetadata, ToolDefinition
from openapi_mcp_adapter.request_builder import apply_environment_defaults, build_request_body
from openapi_mcp_adapter.schema import SchemaDeriver


@pytest.fixture
def schema_tool(translation_spec):
    tools = {tool.name: tool for tool in SchemaDeriver().derive(translation_spec)}
    return tools["runTranslationService"]


@pytest.fixture
def generic_tool():
    return ToolDefinition(
        name="generic",
        description="no body schema",
        metadata=OperationMetadata(http_method="POST", original_path="/generic"),
    )


@pytest.mark.parametrize("tool_fixture", ["schema_tool", "generic_tool"])
def test_flat_and_nested_arguments_build_the_same_body(request, tool_fixture):
    tool = request.getfixturevalue(tool_fixture)

    flat = build_request_body({"params_source_lang": "en"}, tool, {})
    nested = build_request_body({"params": {"source_lang": "en"}}, tool, {})

    assert flat == nested
    assert flat["params"] == {"source_lang": "en"}


def test_schema_guided_prefers_flattened_key(schema_tool):
    body = build_request_body(
        {
            "service_id": "translate",
            "params_target_lang": "fr",
            "params": {"target_lang": "de", "source_text": "hello"},
            "unknown": 1,
        },
        schema_tool,
        {},
    )

    assert body == {
        "service_id": "translate",
        "params": {"target_lang": "fr", "source_text": "hello"},
    }


def test_schema_guided_always_creates_nested_parent(schema_tool):
    assert build_request_body({"service_id": "x"}, schema_tool, {}) == {
        "service_id": "x",
        "params": {},
    }


def test_generic_splits_on_first_underscore_only(generic_tool):
    body = build_request_body({"a_b_c": 1, "top": "v"}, generic_tool, {})
    assert body == {"a": {"b_c": 1}, "top": "v"}


def test_generic_collision_is_last_write_wins(generic_tool):
    assert build_request_body({"parent": 1, "parent_child": 2}, generic_tool, {}) == {
        "parent": {"child": 2}
    }
    assert build_request_body({"parent_child": 2, "parent": 1}, generic_tool, {}) == {"parent": 1}


def test_argument_takes_precedence_over_default(generic_tool):
    assert build_request_body({"x": 1}, generic_tool, {"x": 2}) == {"x": 1}
    assert build_request_body({}, generic_tool, {"x": 2}) == {"x": 2}


def test_defaults_recurse_into_nested_objects(schema_tool):
    body = build_request_body(
        {"service_id": "translate", "params_source_lang": "en"},
        schema_tool,
        {"params": {"source_lang": "zh", "target_lang": "ja"}, "agentId": "agent-7"},
    )

    assert body == {
        "service_id": "translate",
        "params": {"source_lang": "en", "target_lang": "ja"},
        "agentId": "agent-7",
    }


def test_apply_environment_defaults_never_overwrites_present_values():
    body = {"a": "scalar", "b": None, "c": {"keep": 1}}
    apply_environment_defaults(
        body,
        {"a": {"nested": 1}, "b": "filled", "c": {"keep": 2, "add": 3}, "d": ["x", "y"]},
    )

    assert body == {
        "a": "scalar",
        "b": "filled",
        "c": {"keep": 1, "add": 3},
        "d": ["x", "y"],
    }
