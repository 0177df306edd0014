from __future__ import annotations

import pytest

from legal_admin_hub.core.config import AppConfig, DispatchConfig, LlmConfig, ToolsConfig
from legal_admin_hub.tools import HandlerContext, ToolExecutor, build_default_registry


@pytest.fixture
def app_config() -> AppConfig:
    """Offline config: scripted model, no simulated latency."""

    return AppConfig(
        llm=LlmConfig(backend="scripted"),
        dispatch=DispatchConfig(max_steps=5, step_timeout_s=5.0),
        tools=ToolsConfig(latency_scale=0.0, handler_timeout_s=5.0),
    )


@pytest.fixture
def executor() -> ToolExecutor:
    return ToolExecutor(
        build_default_registry(ToolsConfig(latency_scale=0.0)),
        context=HandlerContext(latency_scale=0.0),
        handler_timeout_s=5.0,
    )
