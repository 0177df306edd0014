from __future__ import annotations

import secrets
import uuid


def new_request_id() -> str:
    return secrets.token_hex(16)


def new_message_id() -> str:
    return f"msg_{secrets.token_hex(8)}"


def new_tool_call_id() -> str:
    return f"call_{secrets.token_hex(8)}"


def new_record_id(prefix: str) -> str:
    # Random, never sequential: ids are minted concurrently by independent calls.
    return f"{prefix}_{uuid.uuid4().hex}"
