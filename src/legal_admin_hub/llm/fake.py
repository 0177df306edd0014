"""Offline completion service for tests and ``--fake`` runs."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Sequence, Union

from legal_admin_hub.core.errors import ModelServiceError
from legal_admin_hub.core.types import Message, ToolCall
from legal_admin_hub.observability.ids import new_tool_call_id

from .base import StreamChunk, TextFragment

# A turn is a sequence of text fragments, tool calls ({"name", "arguments"}
# dicts or ToolCall objects) and exceptions, replayed in order.
TurnItem = Union[str, ToolCall, dict, BaseException]
Turn = Sequence[TurnItem]
Script = Callable[[Sequence[Message], list[dict[str, Any]]], Turn]


@dataclass(frozen=True, slots=True)
class RecordedRequest:
    messages: tuple[Message, ...]
    tool_names: tuple[str, ...]


def tool_call(name: str, arguments: dict[str, Any] | None = None, *, id: str | None = None) -> ToolCall:  # noqa: A002
    args = dict(arguments or {})
    return ToolCall(
        id=id or new_tool_call_id(),
        name=name,
        arguments_json=json.dumps(args, ensure_ascii=False),
        arguments=args,
    )


class ScriptedCompletionService:
    """Replays scripted turns instead of calling a model.

    ``script`` is either a list of turns (one per model invocation; once it
    is exhausted every further invocation answers with ``final_text``) or a
    callable receiving the conversation and tool specs.
    """

    def __init__(self, script: Sequence[Turn] | Script | None = None, *, final_text: str = "(scripted) done") -> None:
        self._script = script if script is not None else default_script
        self._final_text = final_text
        self.requests: list[RecordedRequest] = []

    async def stream(self, messages: Sequence[Message], tools: list[dict[str, Any]]) -> AsyncIterator[StreamChunk]:
        self.requests.append(
            RecordedRequest(
                messages=tuple(messages),
                tool_names=tuple(t["function"]["name"] for t in tools),
            )
        )

        for item in self._next_turn(messages, tools):
            await asyncio.sleep(0)
            if isinstance(item, BaseException):
                if isinstance(item, ModelServiceError):
                    raise item
                raise ModelServiceError(str(item)) from item
            if isinstance(item, str):
                yield TextFragment(item)
            elif isinstance(item, ToolCall):
                yield item
            else:
                yield tool_call(str(item["name"]), item.get("arguments"), id=item.get("id"))

    def _next_turn(self, messages: Sequence[Message], tools: list[dict[str, Any]]) -> Turn:
        if callable(self._script):
            return self._script(messages, tools)
        index = len(self.requests) - 1
        if index < len(self._script):
            return self._script[index]
        return [self._final_text]


def default_script(messages: Sequence[Message], tools: list[dict[str, Any]]) -> Turn:
    """Greet through the receptionist tool, then relay its answer."""

    last = messages[-1] if messages else None
    if last is not None and last.role == "tool":
        try:
            text = str(json.loads(last.content).get("text", ""))
        except (ValueError, AttributeError):
            text = last.content
        return ["(fake) ", text]

    user_text = next((m.content for m in reversed(messages) if m.role == "user"), "")
    names = {t["function"]["name"] for t in tools}
    if "receptionist" not in names:
        return [f"(fake) You said: {user_text}"]
    return [
        "Let me check with the front desk.",
        {"name": "receptionist", "arguments": {"clientName": "Guest", "inquiry": user_text, "action": "greet"}},
    ]
