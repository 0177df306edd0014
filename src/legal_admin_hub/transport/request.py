"""Inbound request decoding.

Accepts ``{"messages": [...]}`` where each entry has a ``role`` of user or
assistant and its text in ``content`` (string or list of text parts) or in
``parts`` (UI-message style). Anything else is rejected before it can reach
the model.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from legal_admin_hub.core.errors import MalformedRequestError
from legal_admin_hub.core.types import Message


class TextPart(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["text"]
    text: str


class InboundMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    role: Literal["user", "assistant"]
    content: Union[str, list[Union[TextPart, str]], None] = None
    parts: list[dict[str, Any]] | None = None

    @model_validator(mode="after")
    def _has_text(self) -> "InboundMessage":
        if self.content is None and self.parts is None:
            raise ValueError("message needs 'content' or 'parts'")
        if self.role == "user" and not self.text().strip():
            raise ValueError("user message text must not be empty")
        return self

    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        if isinstance(self.content, list):
            return "".join(p if isinstance(p, str) else p.text for p in self.content)
        # UI parts: keep text, drop tool/step parts.
        return "".join(str(p.get("text") or "") for p in self.parts or [] if p.get("type") == "text")


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    messages: list[InboundMessage] = Field(min_length=1)


def decode_request(body: bytes | str) -> list[Message]:
    """Decode and validate a request body into conversation messages."""

    try:
        raw = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedRequestError(f"request body is not valid JSON: {e}", status_code=400) from e

    if not isinstance(raw, dict):
        raise MalformedRequestError("request body must be a JSON object", status_code=400)

    try:
        req = ChatRequest.model_validate(raw)
    except ValidationError as e:
        details = [
            {"loc": ".".join(str(p) for p in err.get("loc", ())), "type": err.get("type"), "msg": err.get("msg")}
            for err in e.errors()
        ]
        raise MalformedRequestError("invalid messages", status_code=422, details=details) from e

    out: list[Message] = []
    for m in req.messages:
        if m.id:
            out.append(Message(role=m.role, content=m.text(), id=m.id))
        else:
            out.append(Message(role=m.role, content=m.text()))
    return out
