from __future__ import annotations

import json
from pathlib import Path

import pytest

from legal_admin_hub.core import cli


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setenv("OPENAI_API_KEY", "k_test")


def test_tools_command_prints_specs(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli.main(["--fake", "--config", str(tmp_path / "missing.yaml"), "tools"])

    assert rc == 0
    specs = json.loads(capsys.readouterr().out)
    assert [s["function"]["name"] for s in specs][0] == "receptionist"
    assert len(specs) == 8


def test_local_fake_chat_one_shot(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = tmp_path / "app.yaml"
    cfg.write_text("tools:\n  latency_scale: 0\n", encoding="utf-8")

    rc = cli.main(["--fake", "--config", str(cfg), "chat", "--local", "--text", "hello"])

    out = capsys.readouterr().out
    assert rc == 0
    assert "[tool] receptionist" in out
    assert "(fake) Welcome Guest!" in out


def test_missing_config_without_fake_is_an_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli.main(["--config", str(tmp_path / "missing.yaml"), "tools"])

    assert rc == 2
    assert "config error" in capsys.readouterr().err
