from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

__all__ = [
    "AppConfig",
    "ConfigError",
    "DispatchConfig",
    "LlmConfig",
    "LoggingConfig",
    "ServerConfig",
    "ToolsConfig",
    "load_config",
]


_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

LLM_BACKENDS = frozenset({"openai", "langchain", "scripted"})


def _expand_env_in_str(value: str, *, path: str) -> str:
    def repl(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in os.environ:
            raise ConfigError(f"environment variable {key!r} is missing", path=path)
        if os.environ[key] == "":
            raise ConfigError(f"environment variable {key!r} is empty", path=path)
        return os.environ[key]

    return _ENV_PATTERN.sub(repl, value)


def _expand_env(obj: Any, *, path: str) -> Any:
    if isinstance(obj, str):
        return _expand_env_in_str(obj, path=path)
    if isinstance(obj, list):
        return [_expand_env(v, path=f"{path}[{i}]") for i, v in enumerate(obj)]
    if isinstance(obj, dict):
        return {k: _expand_env(v, path=f"{path}.{k}" if path else str(k)) for k, v in obj.items()}
    return obj


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("must be a mapping", path=key)
    return value


@dataclass(frozen=True)
class LlmConfig:
    api_key: str = ""
    backend: str = "openai"
    base_url: str | None = None
    model: str = "gpt-5-mini"
    timeout_s: float = 30.0
    max_retries: int = 2
    temperature: float | None = None


@dataclass(frozen=True)
class DispatchConfig:
    max_steps: int = 5
    step_timeout_s: float = 60.0
    system_prompt: str | None = None


@dataclass(frozen=True)
class ToolsConfig:
    enabled: bool = True
    whitelist: list[str] = field(default_factory=list)
    max_concurrency: int = 4
    handler_timeout_s: float = 30.0
    latency_scale: float = 1.0
    strict_reschedule: bool = False


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    max_body_bytes: int = 1_000_000


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"


@dataclass(frozen=True)
class AppConfig:
    llm: LlmConfig = field(default_factory=LlmConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path, *, load_dotenv_file: bool = True) -> AppConfig:
    """Load YAML config and expand ${ENV_VAR} placeholders.

    Missing or empty variables are errors that name the key path they were
    referenced from. ``llm.api_key`` falls back to ``OPENAI_API_KEY``.
    """

    if load_dotenv_file:
        # Local dev: allow injecting secrets from .env (do not commit it).
        load_dotenv(override=False)

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError("config file does not exist", path=str(config_path))

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", path=str(config_path)) from e

    if not isinstance(raw, dict):
        raise ConfigError("top level must be a YAML mapping", path=str(config_path))

    return parse_config(_expand_env(raw, path=""))


def parse_config(raw: dict[str, Any]) -> AppConfig:
    llm_raw = _section(raw, "llm")
    backend = str(llm_raw.get("backend", LlmConfig.backend))
    if backend not in LLM_BACKENDS:
        raise ConfigError(f"unsupported backend {backend!r}", path="llm.backend")

    api_key = llm_raw.get("api_key")
    if api_key is None or api_key == "":
        api_key = os.getenv("OPENAI_API_KEY", "")
    if not isinstance(api_key, str):
        raise ConfigError("must be a string", path="llm.api_key")
    if backend != "scripted" and not api_key.strip():
        raise ConfigError("must be a non-empty string (or set OPENAI_API_KEY)", path="llm.api_key")

    temperature = llm_raw.get("temperature")
    llm = LlmConfig(
        api_key=api_key,
        backend=backend,
        base_url=str(llm_raw["base_url"]) if llm_raw.get("base_url") else None,
        model=str(llm_raw.get("model", LlmConfig.model)),
        timeout_s=float(llm_raw.get("timeout_s", LlmConfig.timeout_s)),
        max_retries=int(llm_raw.get("max_retries", LlmConfig.max_retries)),
        temperature=float(temperature) if temperature is not None else None,
    )

    dispatch_raw = _section(raw, "dispatch")
    dispatch = DispatchConfig(
        max_steps=int(dispatch_raw.get("max_steps", DispatchConfig.max_steps)),
        step_timeout_s=float(dispatch_raw.get("step_timeout_s", DispatchConfig.step_timeout_s)),
        system_prompt=(
            str(dispatch_raw["system_prompt"]) if dispatch_raw.get("system_prompt") is not None else None
        ),
    )
    if dispatch.max_steps < 1:
        raise ConfigError("must be an integer >= 1", path="dispatch.max_steps")
    if dispatch.step_timeout_s <= 0:
        raise ConfigError("must be > 0", path="dispatch.step_timeout_s")

    tools_raw = _section(raw, "tools")
    whitelist = tools_raw.get("whitelist", [])
    if whitelist is None:
        whitelist = []
    if not isinstance(whitelist, list) or not all(isinstance(x, str) for x in whitelist):
        raise ConfigError("must be a list of strings", path="tools.whitelist")

    tools = ToolsConfig(
        enabled=bool(tools_raw.get("enabled", ToolsConfig.enabled)),
        whitelist=list(whitelist),
        max_concurrency=int(tools_raw.get("max_concurrency", ToolsConfig.max_concurrency)),
        handler_timeout_s=float(tools_raw.get("handler_timeout_s", ToolsConfig.handler_timeout_s)),
        latency_scale=float(tools_raw.get("latency_scale", ToolsConfig.latency_scale)),
        strict_reschedule=bool(tools_raw.get("strict_reschedule", ToolsConfig.strict_reschedule)),
    )
    if tools.max_concurrency < 1:
        raise ConfigError("must be an integer >= 1", path="tools.max_concurrency")
    if tools.handler_timeout_s <= 0:
        raise ConfigError("must be > 0", path="tools.handler_timeout_s")
    if tools.latency_scale < 0:
        raise ConfigError("must be >= 0", path="tools.latency_scale")

    server_raw = _section(raw, "server")
    server = ServerConfig(
        host=str(server_raw.get("host", ServerConfig.host)),
        port=int(server_raw.get("port", ServerConfig.port)),
        max_body_bytes=int(server_raw.get("max_body_bytes", ServerConfig.max_body_bytes)),
    )

    logging_raw = _section(raw, "logging")
    log_cfg = LoggingConfig(
        level=str(logging_raw.get("level", LoggingConfig.level)).upper(),
        format=str(logging_raw.get("format", LoggingConfig.format)).lower(),
    )
    if log_cfg.format not in {"json", "text"}:
        raise ConfigError("must be 'json' or 'text'", path="logging.format")

    return AppConfig(llm=llm, dispatch=dispatch, tools=tools, server=server, logging=log_cfg)
