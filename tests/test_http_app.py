from __future__ import annotations

import dataclasses
import json

from starlette.testclient import TestClient

from legal_admin_hub.core.config import AppConfig
from legal_admin_hub.llm import ScriptedCompletionService
from legal_admin_hub.transport import create_app, decode_stream

INTAKE = {"clientName": "Ana", "email": "ana@example.com", "matterDescription": "lease dispute"}


def _post(client: TestClient, messages: list[dict]) -> tuple[int, list]:
    resp = client.post("/api/assistant", json={"messages": messages})
    if resp.status_code != 200:
        return resp.status_code, [resp.json()]
    return resp.status_code, decode_stream(resp.text.splitlines())


def test_assistant_streams_tool_round(app_config: AppConfig) -> None:
    completion = ScriptedCompletionService(
        [["Recording that.", {"name": "intakeAgent", "arguments": INTAKE, "id": "c1"}], ["Done."]]
    )
    client = TestClient(create_app(app_config, completion=completion))

    resp = client.post("/api/assistant", json={"messages": [{"role": "user", "content": "I need a lawyer"}]})

    assert resp.status_code == 200
    assert resp.headers["x-vercel-ai-data-stream"] == "v1"
    assert resp.headers["content-type"].startswith("text/plain")

    frames = decode_stream(resp.text.splitlines())
    assert [f.code for f in frames] == ["0", "9", "2", "a", "e", "0", "d"]
    assert frames[1].value["toolName"] == "intakeAgent"
    assert frames[3].value["toolCallId"] == "c1"
    assert frames[3].value["state"] == "complete"
    assert frames[-1].value == {"finishReason": "stop", "steps": 1}


def test_model_failure_ends_with_error_frames(app_config: AppConfig) -> None:
    completion = ScriptedCompletionService([[RuntimeError("provider unavailable")]])
    client = TestClient(create_app(app_config, completion=completion))

    status, frames = _post(client, [{"role": "user", "content": "hi"}])

    assert status == 200
    assert [f.code for f in frames] == ["3", "d"]
    assert "provider unavailable" in frames[0].value
    assert frames[1].value["finishReason"] == "error"


def test_malformed_requests_never_reach_the_model(app_config: AppConfig) -> None:
    completion = ScriptedCompletionService()
    client = TestClient(create_app(app_config, completion=completion))

    bad_json = client.post("/api/assistant", content=b"{nope", headers={"content-type": "application/json"})
    status, (body,) = _post(client, [{"role": "tool", "content": "x"}])
    empty_status, _ = _post(client, [])

    assert bad_json.status_code == 400
    assert status == 422
    assert body["details"][0]["loc"].startswith("messages.0")
    assert empty_status == 422
    assert completion.requests == []


def test_oversized_body_is_413(app_config: AppConfig) -> None:
    cfg = dataclasses.replace(app_config, server=dataclasses.replace(app_config.server, max_body_bytes=64))
    client = TestClient(create_app(cfg, completion=ScriptedCompletionService()))

    resp = client.post("/api/assistant", json={"messages": [{"role": "user", "content": "x" * 200}]})

    assert resp.status_code == 413


def test_oversized_chunked_body_is_413(app_config: AppConfig) -> None:
    cfg = dataclasses.replace(app_config, server=dataclasses.replace(app_config.server, max_body_bytes=64))
    completion = ScriptedCompletionService()
    client = TestClient(create_app(cfg, completion=completion))

    def chunks():
        yield b'{"messages": [{"role": "user", "content": "'
        yield b"x" * 100
        yield b'"}]}'

    resp = client.post("/api/assistant", content=chunks(), headers={"content-type": "application/json"})

    assert resp.status_code == 413
    assert completion.requests == []


def test_budget_exhaustion_reports_length(app_config: AppConfig) -> None:
    cfg = dataclasses.replace(app_config, dispatch=dataclasses.replace(app_config.dispatch, max_steps=1))
    completion = ScriptedCompletionService(
        lambda messages, tools: [{"name": "receptionist", "arguments": {"clientName": "A", "inquiry": "x", "action": "greet"}}]
    )
    client = TestClient(create_app(cfg, completion=completion))

    _, frames = _post(client, [{"role": "user", "content": "hi"}])

    assert frames[-1].value == {"finishReason": "length", "steps": 1}
    assert frames[-2].code == "0"


def test_list_tools_and_health(app_config: AppConfig) -> None:
    client = TestClient(create_app(app_config, completion=ScriptedCompletionService()))

    tools = client.get("/api/tools").json()["tools"]
    health = client.get("/healthz")

    assert [t["name"] for t in tools][:2] == ["receptionist", "portfolioManager"]
    assert "clientName" in tools[0]["parameters"]["properties"]
    assert health.json() == {"status": "ok"}
    json.dumps(tools)
