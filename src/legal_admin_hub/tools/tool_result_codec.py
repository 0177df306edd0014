from __future__ import annotations

import json
from typing import Any

from legal_admin_hub.core.types import Message, ToolResult


def normalize_error(
    *,
    error_type: str,
    message: str,
    field: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    err: dict[str, Any] = {
        "type": str(error_type),
        "message": str(message),
        "details": {k: v if _is_json_friendly(v) else repr(v) for k, v in (details or {}).items()},
    }
    if field is not None:
        err["field"] = field
    return err


def error_result(
    *,
    tool_call_id: str,
    name: str,
    error_type: str,
    message: str,
    field: str | None = None,
    details: dict[str, Any] | None = None,
) -> ToolResult:
    return ToolResult(
        tool_call_id=tool_call_id,
        name=name,
        state="error",
        payload=message,
        error=normalize_error(error_type=error_type, message=message, field=field, details=details),
    )


def dumps_result(r: ToolResult) -> str:
    """Serialize a terminal result for the model's tool message.

    Content is always a JSON string, never a Python repr.
    """

    body: dict[str, Any] = {"state": r.state, "text": r.payload}
    if r.error is not None:
        body["error"] = r.error
    return json.dumps(body, ensure_ascii=False, separators=(",", ":"))


def tool_message_from_result(r: ToolResult) -> Message:
    return Message(role="tool", content=dumps_result(r), tool_call_id=r.tool_call_id, name=r.name)


def _is_json_friendly(obj: Any) -> bool:
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return True
    if isinstance(obj, (list, tuple)):
        return all(_is_json_friendly(v) for v in obj)
    if isinstance(obj, dict):
        return all(isinstance(k, str) and _is_json_friendly(v) for k, v in obj.items())
    return False
