"""Events emitted by the dispatch loop, in production order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from legal_admin_hub.core.types import ToolCall, ToolResult

FinishReason = Literal["stop", "max_steps", "disconnected"]


@dataclass(frozen=True, slots=True)
class TextDelta:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCallStarted:
    step: int
    call: ToolCall


@dataclass(frozen=True, slots=True)
class ToolProgress:
    step: int
    result: ToolResult


@dataclass(frozen=True, slots=True)
class ToolResultEvent:
    step: int
    result: ToolResult


@dataclass(frozen=True, slots=True)
class StepFinished:
    step: int
    tool_calls: int


@dataclass(frozen=True, slots=True)
class Finished:
    reason: FinishReason
    steps: int
    text: str


@dataclass(frozen=True, slots=True)
class Failed:
    error_type: str
    message: str
    steps: int


DispatchEvent = Union[TextDelta, ToolCallStarted, ToolProgress, ToolResultEvent, StepFinished, Finished, Failed]
