from __future__ import annotations

from typing import Any, Sequence

import pytest
from starlette.testclient import TestClient

from legal_admin_hub.client import ChatClient
from legal_admin_hub.core.config import AppConfig
from legal_admin_hub.core.errors import MalformedRequestError, ModelServiceError
from legal_admin_hub.core.types import Message
from legal_admin_hub.llm import ScriptedCompletionService
from legal_admin_hub.transport import create_app


def _count_turns(messages: Sequence[Message], tools: list[dict[str, Any]]) -> list[str]:
    return [f"user turns: {sum(m.role == 'user' for m in messages)}"]


def test_client_keeps_history_between_turns(app_config: AppConfig) -> None:
    http = TestClient(create_app(app_config, completion=ScriptedCompletionService(_count_turns)))
    client = ChatClient(http=http)

    first = client.send("hello")
    second = client.send("and again")

    assert first.text == "user turns: 1"
    assert second.text == "user turns: 2"
    assert second.finish_reason == "stop"
    assert [m["role"] for m in client.history] == ["user", "assistant", "user", "assistant"]


def test_client_collects_tool_frames(app_config: AppConfig) -> None:
    client = ChatClient(http=TestClient(create_app(app_config, completion=ScriptedCompletionService())))

    reply = client.send("hello")

    assert [c["toolName"] for c in reply.tool_calls] == ["receptionist"]
    assert reply.tool_results[0]["state"] == "complete"
    assert "(fake) Welcome Guest!" in reply.text


def test_client_raises_on_rejected_request(app_config: AppConfig) -> None:
    client = ChatClient(http=TestClient(create_app(app_config, completion=ScriptedCompletionService())))

    with pytest.raises(MalformedRequestError) as ei:
        client.send("   ")
    assert ei.value.status_code == 422
    assert client.history == []


def test_client_raises_on_failed_run(app_config: AppConfig) -> None:
    completion = ScriptedCompletionService([[RuntimeError("down")]])
    client = ChatClient(http=TestClient(create_app(app_config, completion=completion)))

    with pytest.raises(ModelServiceError):
        client.send("hello")
    assert client.history == []
