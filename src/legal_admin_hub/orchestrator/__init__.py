"""Dispatch loop: model turns, tool steps and the events they emit."""

from __future__ import annotations

from legal_admin_hub.core.config import AppConfig
from legal_admin_hub.llm import CompletionService, build_completion_service
from legal_admin_hub.tools import HandlerContext, ToolExecutor, build_default_registry

from .conversation import Conversation
from .dispatch import DispatchLoop, DispatchRun
from .events import (
    DispatchEvent,
    Failed,
    Finished,
    StepFinished,
    TextDelta,
    ToolCallStarted,
    ToolProgress,
    ToolResultEvent,
)


def build_dispatch_loop(cfg: AppConfig, *, completion: CompletionService | None = None) -> DispatchLoop:
    """Wire registry, executor and completion service from config."""

    registry = build_default_registry(cfg.tools)
    executor = ToolExecutor(
        registry,
        context=HandlerContext(
            latency_scale=cfg.tools.latency_scale,
            strict_reschedule=cfg.tools.strict_reschedule,
        ),
        handler_timeout_s=cfg.tools.handler_timeout_s,
    )
    return DispatchLoop(
        completion=completion or build_completion_service(cfg.llm),
        executor=executor,
        max_steps=cfg.dispatch.max_steps,
        step_timeout_s=cfg.dispatch.step_timeout_s,
        max_concurrency=cfg.tools.max_concurrency,
        system_prompt=cfg.dispatch.system_prompt,
    )


__all__ = [
    "Conversation",
    "DispatchEvent",
    "DispatchLoop",
    "DispatchRun",
    "Failed",
    "Finished",
    "StepFinished",
    "TextDelta",
    "ToolCallStarted",
    "ToolProgress",
    "ToolResultEvent",
    "build_dispatch_loop",
]
