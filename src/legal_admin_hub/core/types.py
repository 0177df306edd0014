from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from legal_admin_hub.observability.ids import new_message_id

Role = Literal["system", "user", "assistant", "tool"]
ToolState = Literal["processing", "complete", "error"]

TERMINAL_STATES: frozenset[str] = frozenset({"complete", "error"})


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation requested by the model.

    ``arguments`` is ``None`` when the streamed JSON arguments could not be
    parsed; ``parse_error`` then carries the reason.
    """

    id: str
    name: str
    arguments_json: str
    arguments: dict[str, Any] | None
    parse_error: str | None = None


@dataclass(frozen=True, slots=True)
class HandlerUpdate:
    """One element of a handler's output stream (no call id yet)."""

    state: ToolState
    payload: str = ""
    error: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ToolResult:
    tool_call_id: str
    name: str
    state: ToolState
    payload: str = ""
    error: dict[str, Any] | None = None

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def ok(self) -> bool:
        return self.state == "complete"


@dataclass(frozen=True, slots=True)
class Message:
    role: Role
    content: str
    id: str = field(default_factory=new_message_id)
    tool_call_id: str | None = None
    name: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
