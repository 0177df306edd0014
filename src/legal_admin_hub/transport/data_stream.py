"""Line framing for streamed responses.

One frame per line, ``<code>:<json>\\n``:

    0  text fragment (JSON string)
    9  tool call {toolCallId, toolName, args}
    2  data array; carries tool progress ({type: "tool-progress", ...})
    a  tool result {toolCallId, toolName, state, result[, error]}
    3  error (JSON string); always followed by a ``d`` frame
    e  step finish {finishReason: "tool-calls", step}
    d  message finish {finishReason: "stop" | "length" | "error", steps}

A stream is complete once a ``d`` frame arrives; a ``3`` frame before it
means the request failed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable

from legal_admin_hub.orchestrator.events import (
    DispatchEvent,
    Failed,
    Finished,
    StepFinished,
    TextDelta,
    ToolCallStarted,
    ToolProgress,
    ToolResultEvent,
)

STREAM_HEADERS = {"x-vercel-ai-data-stream": "v1", "cache-control": "no-cache"}
MEDIA_TYPE = "text/plain; charset=utf-8"

CODE_KINDS = {
    "0": "text",
    "9": "tool_call",
    "2": "data",
    "a": "tool_result",
    "3": "error",
    "e": "finish_step",
    "d": "finish_message",
}

_FINISH_REASONS = {"stop": "stop", "max_steps": "length", "disconnected": "stop"}


@dataclass(frozen=True, slots=True)
class StreamFrame:
    code: str
    kind: str
    value: Any


def _frame(code: str, value: Any) -> str:
    return f"{code}:{json.dumps(value, ensure_ascii=False, separators=(',', ':'))}\n"


def encode_event(event: DispatchEvent) -> list[str]:
    if isinstance(event, TextDelta):
        return [_frame("0", event.text)] if event.text else []

    if isinstance(event, ToolCallStarted):
        call = event.call
        args: Any = call.arguments if call.arguments is not None else call.arguments_json
        return [_frame("9", {"toolCallId": call.id, "toolName": call.name, "args": args})]

    if isinstance(event, ToolProgress):
        r = event.result
        return [
            _frame(
                "2",
                [{"type": "tool-progress", "toolCallId": r.tool_call_id, "toolName": r.name, "state": r.state}],
            )
        ]

    if isinstance(event, ToolResultEvent):
        r = event.result
        body: dict[str, Any] = {
            "toolCallId": r.tool_call_id,
            "toolName": r.name,
            "state": r.state,
            "result": r.payload,
        }
        if r.error is not None:
            body["error"] = r.error
        return [_frame("a", body)]

    if isinstance(event, StepFinished):
        return [_frame("e", {"finishReason": "tool-calls", "step": event.step, "isContinued": False})]

    if isinstance(event, Finished):
        return [_frame("d", {"finishReason": _FINISH_REASONS[event.reason], "steps": event.steps})]

    if isinstance(event, Failed):
        return [
            _frame("3", f"{event.error_type}: {event.message}"),
            _frame("d", {"finishReason": "error", "steps": event.steps}),
        ]

    raise TypeError(f"unknown dispatch event: {type(event).__name__}")


def decode_line(line: str) -> StreamFrame:
    code, sep, payload = line.rstrip("\n").partition(":")
    if not sep or code not in CODE_KINDS:
        raise ValueError(f"malformed stream frame: {line[:80]!r}")
    return StreamFrame(code=code, kind=CODE_KINDS[code], value=json.loads(payload))


def decode_stream(lines: Iterable[str]) -> list[StreamFrame]:
    return [decode_line(line) for line in lines if line.strip()]
