from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, AsyncIterator, Callable, Iterable, Mapping

from langchain_core.utils.function_calling import convert_to_openai_tool

from legal_admin_hub.core.config import ToolsConfig
from legal_admin_hub.core.errors import ConfigError
from legal_admin_hub.core.types import HandlerUpdate

from . import handlers
from .handlers import HandlerContext
from .schemas import (
    CalendarAgentInput,
    CallAgentInput,
    ChatAIAgentInput,
    DocumentAgentInput,
    EmailAgentInput,
    IntakeAgentInput,
    PortfolioManagerInput,
    ReceptionistInput,
    ToolInput,
)

_TOOL_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

Handler = Callable[[Any, HandlerContext], AsyncIterator[HandlerUpdate]]


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    name: str
    description: str
    input_model: type[ToolInput]
    handler: Handler

    def parameters(self) -> dict[str, Any]:
        return self.openai_spec()["function"]["parameters"]

    def openai_spec(self) -> dict[str, Any]:
        """OpenAI-compatible function spec derived from the input model."""

        spec = convert_to_openai_tool(self.input_model)
        fn = spec.setdefault("function", {})
        fn["name"] = self.name
        fn["description"] = self.description
        if not isinstance(fn.get("parameters"), dict):
            fn["parameters"] = {"type": "object", "properties": {}}
        spec["type"] = "function"
        return spec


def to_model_tool_name(name: str) -> str:
    if not isinstance(name, str) or not name:
        raise ValueError("name must be a non-empty string")
    if not _TOOL_NAME_RE.fullmatch(name):
        raise ValueError(f"tool name is not OpenAI-compatible: {name!r}")
    return name


class ToolRegistry:
    """Immutable, ordered set of tool definitions.

    Built once at startup and shared read-only by every request. Order is the
    order tools are presented to the model.
    """

    __slots__ = ("_definitions", "_by_name", "_specs")

    def __init__(self, definitions: Iterable[ToolDefinition] = ()) -> None:
        defs = tuple(definitions)
        by_name: dict[str, ToolDefinition] = {}
        for d in defs:
            to_model_tool_name(d.name)
            if d.name in by_name:
                raise ValueError(f"duplicate tool name: {d.name!r}")
            by_name[d.name] = d

        self._definitions = defs
        self._by_name: Mapping[str, ToolDefinition] = MappingProxyType(by_name)
        self._specs = tuple(d.openai_spec() for d in defs)

    def list_definitions(self) -> tuple[ToolDefinition, ...]:
        return self._definitions

    def resolve(self, name: str) -> ToolDefinition | None:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [d.name for d in self._definitions]

    def openai_tools(self) -> list[dict[str, Any]]:
        # Copies: callers may hand these to SDKs that mutate their inputs.
        return [_deep_copy(s) for s in self._specs]

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name


def _deep_copy(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _deep_copy(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_deep_copy(v) for v in obj]
    return obj


DEFAULT_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="receptionist",
        description=(
            "Handle initial client interactions and coordinate with other agents. "
            "Route inquiries about client records to Portfolio Manager, scheduling questions "
            "to Calendar Agent, and communication needs to Email Agent."
        ),
        input_model=ReceptionistInput,
        handler=handlers.receptionist,
    ),
    ToolDefinition(
        name="portfolioManager",
        description=(
            "Retrieve and update client records, case histories, and documents. "
            "Manages client portfolios and provides access to relevant information."
        ),
        input_model=PortfolioManagerInput,
        handler=handlers.portfolio_manager,
    ),
    ToolDefinition(
        name="calendarAgent",
        description=(
            "Manage scheduling for consultations. Use this to check availability, book new client "
            "consultations, and reschedule existing ones."
        ),
        input_model=CalendarAgentInput,
        handler=handlers.calendar_agent,
    ),
    ToolDefinition(
        name="emailAgent",
        description=(
            "Handle outgoing client emails for confirmations, reminders, after-hours acknowledgements, "
            "and general updates. Drafts and sends emails via the firm's email provider."
        ),
        input_model=EmailAgentInput,
        handler=handlers.email_agent,
    ),
    ToolDefinition(
        name="chatAIAgent",
        description=(
            "Handle general inquiries and provide conversational-style responses "
            "(placeholder for the phone/voice agent integration)."
        ),
        input_model=ChatAIAgentInput,
        handler=handlers.chat_ai_agent,
    ),
    ToolDefinition(
        name="intakeAgent",
        description=(
            "Create or update a client intake record, including contact details, matter description, "
            "and basic tags (matter type, urgency)."
        ),
        input_model=IntakeAgentInput,
        handler=handlers.intake_agent,
    ),
    ToolDefinition(
        name="documentAgent",
        description=(
            "Draft structured documents based on existing client and matter information: intake "
            "summaries for lawyers, follow-up emails, and simple engagement templates."
        ),
        input_model=DocumentAgentInput,
        handler=handlers.document_agent,
    ),
    ToolDefinition(
        name="callAgent",
        description=(
            "Initiate or describe phone call workflows (handled by the voice agent or staff) "
            "for after-hours answering or follow-up calls."
        ),
        input_model=CallAgentInput,
        handler=handlers.call_agent,
    ),
)


def build_default_registry(tools_cfg: ToolsConfig | None = None) -> ToolRegistry:
    """Registry of the built-in tools, filtered by config.

    Disabled tools yield an empty registry (chat-only); a non-empty whitelist
    keeps only the named tools, in declaration order.
    """

    cfg = tools_cfg or ToolsConfig()
    if not cfg.enabled:
        return ToolRegistry(())

    defs = DEFAULT_DEFINITIONS
    if cfg.whitelist:
        unknown = set(cfg.whitelist) - {d.name for d in defs}
        if unknown:
            raise ConfigError(f"unknown tools: {sorted(unknown)}", path="tools.whitelist")
        allowed = set(cfg.whitelist)
        defs = tuple(d for d in defs if d.name in allowed)
    return ToolRegistry(defs)
