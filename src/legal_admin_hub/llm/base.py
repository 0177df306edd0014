from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Protocol, Sequence, Union

from legal_admin_hub.core.types import Message, ToolCall


@dataclass(frozen=True, slots=True)
class TextFragment:
    """A piece of the assistant's natural-language reply."""

    text: str


StreamChunk = Union[TextFragment, ToolCall]


class CompletionService(Protocol):
    """(conversation, tool specs) -> incremental stream of text and tool calls.

    Implementations raise ``ModelServiceError`` for any provider failure.
    Tool calls are yielded in the order the model issued them.
    """

    def stream(self, messages: Sequence[Message], tools: list[dict[str, Any]]) -> AsyncIterator[StreamChunk]:
        ...


def to_openai_messages(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """Convert conversation messages to OpenAI chat-completions dicts."""

    out: list[dict[str, Any]] = []
    for m in messages:
        if m.role == "tool":
            out.append({"role": "tool", "tool_call_id": m.tool_call_id, "content": m.content})
            continue

        msg: dict[str, Any] = {"role": m.role, "content": m.content}
        if m.role == "assistant" and m.tool_calls:
            msg["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": _arguments_json(tc)},
                }
                for tc in m.tool_calls
            ]
            if not m.content:
                msg["content"] = None
        out.append(msg)
    return out


def _arguments_json(tc: ToolCall) -> str:
    if tc.arguments_json:
        return tc.arguments_json
    return json.dumps(tc.arguments or {}, ensure_ascii=False)
