"""Streaming tool-call argument accumulator.

OpenAI-compatible streaming delivers tool-call JSON arguments split across
chunks; the call id and name usually arrive only on the first chunk of each
call, later chunks carry just the index. Fragments are accumulated per call
until the stream ends, then parsed once.

Parsing is best-effort: unparseable arguments produce a ToolCall with
``arguments=None`` so the executor can report it back to the model.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from legal_admin_hub.core.types import ToolCall
from legal_admin_hub.observability.ids import new_tool_call_id


@dataclass(slots=True)
class _AccumulatedToolCall:
    key: str
    id: str = ""
    name: str = ""
    arguments: str = ""


class ToolCallAccumulator:
    """Accumulate streamed tool-call fragments into ToolCall objects."""

    def __init__(self) -> None:
        self._calls: dict[str, _AccumulatedToolCall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def add_fragment(
        self,
        *,
        index: int | None,
        id: str | None = None,  # noqa: A002
        name: str | None = None,
        arguments: str | None = None,
    ) -> None:
        if index is not None:
            key = f"index_{index}"
        elif id:
            key = f"id_{id}"
        else:
            # No index and no id: continuation of the most recent call.
            key = next(reversed(self._calls), "index_unknown")

        acc = self._calls.get(key)
        if acc is None:
            acc = self._calls[key] = _AccumulatedToolCall(key=key)

        if id and not acc.id:
            acc.id = id
        if name and not acc.name:
            acc.name = name
        if isinstance(arguments, str) and arguments:
            acc.arguments += arguments

    def add_openai_delta(self, delta_tool_calls: list[Any]) -> None:
        """Consume ``choices[0].delta.tool_calls`` from a chat-completions chunk."""

        for tc in delta_tool_calls:
            if isinstance(tc, dict):
                fn = tc.get("function") or {}
                self.add_fragment(
                    index=tc.get("index"),
                    id=tc.get("id"),
                    name=fn.get("name"),
                    arguments=fn.get("arguments"),
                )
            else:
                fn = getattr(tc, "function", None)
                self.add_fragment(
                    index=getattr(tc, "index", None),
                    id=getattr(tc, "id", None),
                    name=getattr(fn, "name", None) if fn is not None else None,
                    arguments=getattr(fn, "arguments", None) if fn is not None else None,
                )

    def add_chunks(self, chunks: list[dict[str, Any]]) -> None:
        """Consume LangChain ``tool_call_chunks`` (keys: id, name, args, index)."""

        for ch in chunks:
            if isinstance(ch, dict):
                self.add_fragment(index=ch.get("index"), id=ch.get("id"), name=ch.get("name"), arguments=ch.get("args"))

    def finalize(self) -> list[ToolCall]:
        """Return all calls in the order they were first seen."""

        out: list[ToolCall] = []
        for acc in self._calls.values():
            call_id = acc.id or new_tool_call_id()
            raw = acc.arguments
            try:
                parsed = json.loads(raw) if raw.strip() else {}
                if not isinstance(parsed, dict):
                    raise ValueError("tool args must be a JSON object")
            except ValueError as exc:
                out.append(ToolCall(id=call_id, name=acc.name, arguments_json=raw, arguments=None, parse_error=str(exc)))
                continue
            out.append(ToolCall(id=call_id, name=acc.name, arguments_json=raw or "{}", arguments=parsed))
        return out

    def reset(self) -> None:
        self._calls.clear()
