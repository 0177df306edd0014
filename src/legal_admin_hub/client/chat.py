from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

import httpx

from legal_admin_hub.core.errors import MalformedRequestError, ModelServiceError
from legal_admin_hub.transport.data_stream import StreamFrame, decode_line


@dataclass(slots=True)
class ChatReply:
    text: str = ""
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    tool_results: list[dict[str, Any]] = field(default_factory=list)
    finish_reason: str | None = None
    error: str | None = None


class ChatClient:
    """Minimal client for the assistant endpoint.

    Keeps the running conversation (user turns and final assistant text) so
    successive ``send`` calls continue the same chat.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        *,
        http: httpx.Client | None = None,
        timeout_s: float = 120.0,
    ) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout_s)
        self._owns_http = http is None
        self.history: list[dict[str, str]] = []

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ChatClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def stream(self, text: str) -> Iterator[StreamFrame]:
        """Send one user message and yield frames as they arrive."""

        messages = [*self.history, {"role": "user", "content": text}]
        reply = ChatReply()

        with self._http.stream("POST", "/api/assistant", json={"messages": messages}) as resp:
            if resp.status_code != 200:
                resp.read()
                try:
                    body = resp.json()
                except ValueError:
                    body = {"error": resp.text}
                raise MalformedRequestError(
                    str(body.get("error", "request rejected")),
                    status_code=resp.status_code,
                    details=list(body.get("details") or []),
                )

            for line in resp.iter_lines():
                if not line.strip():
                    continue
                frame = decode_line(line)
                _apply(reply, frame)
                yield frame

        if reply.error is None:
            self.history = [*messages, {"role": "assistant", "content": reply.text}]

    def send(self, text: str) -> ChatReply:
        """Send one user message and return the collected reply.

        Raises ModelServiceError when the server reports a failed run.
        """

        reply = ChatReply()
        for frame in self.stream(text):
            _apply(reply, frame)
        if reply.error is not None:
            raise ModelServiceError(reply.error)
        return reply


def _apply(reply: ChatReply, frame: StreamFrame) -> None:
    if frame.kind == "text":
        reply.text += str(frame.value)
    elif frame.kind == "tool_call":
        reply.tool_calls.append(dict(frame.value))
    elif frame.kind == "tool_result":
        reply.tool_results.append(dict(frame.value))
    elif frame.kind == "error":
        reply.error = str(frame.value)
    elif frame.kind == "finish_message":
        reply.finish_reason = str(frame.value.get("finishReason"))
