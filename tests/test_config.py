from __future__ import annotations

from pathlib import Path

import pytest

from legal_admin_hub.core.config import load_config, parse_config
from legal_admin_hub.core.errors import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[1]


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "app.yaml"
    p.write_text(text.lstrip(), encoding="utf-8")
    return p


def test_load_config_expands_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "k_test")
    monkeypatch.setenv("LLM_BASE", "http://localhost:9000/v1")

    p = _write(
        tmp_path,
        """
llm:
  api_key: ${OPENAI_API_KEY}
  base_url: ${LLM_BASE}
tools:
  latency_scale: 0
""",
    )

    cfg = load_config(p, load_dotenv_file=False)
    assert cfg.llm.api_key == "k_test"
    assert cfg.llm.base_url == "http://localhost:9000/v1"
    assert cfg.tools.latency_scale == 0.0
    assert cfg.dispatch.max_steps == 5


def test_load_config_missing_env_names_key_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HUB_TEST_KEY", raising=False)

    p = _write(
        tmp_path,
        """
llm:
  api_key: ${HUB_TEST_KEY}
""",
    )

    with pytest.raises(ConfigError) as ei:
        load_config(p, load_dotenv_file=False)

    assert ei.value.path == "llm.api_key"
    assert "HUB_TEST_KEY" in str(ei.value)
    assert "missing" in str(ei.value)


def test_load_config_empty_env_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HUB_TEST_KEY", "")

    p = _write(
        tmp_path,
        """
llm:
  api_key: ${HUB_TEST_KEY}
""",
    )

    with pytest.raises(ConfigError) as ei:
        load_config(p, load_dotenv_file=False)

    assert "empty" in str(ei.value)


def test_repo_configs_app_yaml_loadable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "k_dummy")

    cfg = load_config(REPO_ROOT / "configs" / "app.yaml", load_dotenv_file=False)
    assert cfg.llm.model
    assert cfg.llm.backend == "openai"
    assert cfg.tools.strict_reschedule is False


def test_api_key_required_unless_scripted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ConfigError) as ei:
        parse_config({"llm": {"backend": "openai"}})
    assert ei.value.path == "llm.api_key"

    cfg = parse_config({"llm": {"backend": "scripted"}})
    assert cfg.llm.backend == "scripted"


@pytest.mark.parametrize(
    ("raw", "path"),
    [
        ({"llm": {"backend": "scripted"}, "dispatch": {"max_steps": 0}}, "dispatch.max_steps"),
        ({"llm": {"backend": "scripted"}, "tools": {"max_concurrency": 0}}, "tools.max_concurrency"),
        ({"llm": {"backend": "scripted"}, "tools": {"whitelist": "receptionist"}}, "tools.whitelist"),
        ({"llm": {"backend": "nope"}}, "llm.backend"),
        ({"llm": {"backend": "scripted"}, "server": ["x"]}, "server"),
    ],
)
def test_parse_config_rejects_invalid_values(raw: dict, path: str) -> None:
    with pytest.raises(ConfigError) as ei:
        parse_config(raw)
    assert ei.value.path == path


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml", load_dotenv_file=False)
