from __future__ import annotations

import pytest

from legal_admin_hub.core.config import ToolsConfig
from legal_admin_hub.core.errors import ConfigError
from legal_admin_hub.tools import DEFAULT_DEFINITIONS, ToolDefinition, ToolRegistry, build_default_registry
from legal_admin_hub.tools.handlers import receptionist
from legal_admin_hub.tools.registry import to_model_tool_name
from legal_admin_hub.tools.schemas import ReceptionistInput

ALL_TOOLS = [
    "receptionist",
    "portfolioManager",
    "calendarAgent",
    "emailAgent",
    "chatAIAgent",
    "intakeAgent",
    "documentAgent",
    "callAgent",
]


def test_default_registry_keeps_declaration_order() -> None:
    registry = build_default_registry()

    assert registry.names() == ALL_TOOLS
    assert [d.name for d in registry.list_definitions()] == ALL_TOOLS
    assert len(registry) == 8
    assert "calendarAgent" in registry
    assert registry.resolve("nope") is None


def test_registry_has_no_mutation_api() -> None:
    registry = build_default_registry()

    assert not hasattr(registry, "register")
    with pytest.raises(TypeError):
        registry._by_name["x"] = DEFAULT_DEFINITIONS[0]  # type: ignore[index]


def test_openai_tools_are_copies() -> None:
    registry = build_default_registry()

    specs = registry.openai_tools()
    specs[0]["function"]["name"] = "mutated"

    assert registry.openai_tools()[0]["function"]["name"] == "receptionist"


def test_openai_spec_uses_camel_case_and_required_fields() -> None:
    registry = build_default_registry()
    by_name = {s["function"]["name"]: s for s in registry.openai_tools()}

    receptionist_params = by_name["receptionist"]["function"]["parameters"]
    assert set(receptionist_params["required"]) == {"clientName", "inquiry", "action"}
    assert "enum" in receptionist_params["properties"]["action"]

    calendar_params = by_name["calendarAgent"]["function"]["parameters"]
    assert "durationMinutes" in calendar_params["properties"]
    assert "existingEventId" in calendar_params["properties"]
    assert "existingEventId" not in calendar_params.get("required", [])

    assert by_name["emailAgent"]["type"] == "function"
    assert by_name["emailAgent"]["function"]["description"].startswith("Handle outgoing client emails")


def test_whitelist_filters_in_declaration_order() -> None:
    registry = build_default_registry(ToolsConfig(whitelist=["emailAgent", "receptionist"]))

    assert registry.names() == ["receptionist", "emailAgent"]


def test_whitelist_rejects_unknown_tool() -> None:
    with pytest.raises(ConfigError) as ei:
        build_default_registry(ToolsConfig(whitelist=["teleport"]))
    assert ei.value.path == "tools.whitelist"


def test_disabled_tools_give_empty_registry() -> None:
    registry = build_default_registry(ToolsConfig(enabled=False))

    assert len(registry) == 0
    assert registry.openai_tools() == []


def test_duplicate_names_rejected() -> None:
    d = ToolDefinition(name="dup", description="d", input_model=ReceptionistInput, handler=receptionist)

    with pytest.raises(ValueError):
        ToolRegistry([d, d])


def test_tool_name_validation() -> None:
    assert to_model_tool_name("foo_bar-baz") == "foo_bar-baz"
    with pytest.raises(ValueError):
        to_model_tool_name("foo/bar")
    with pytest.raises(ValueError):
        to_model_tool_name("")
