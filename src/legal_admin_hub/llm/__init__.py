"""Completion services (the model side of the dispatch loop)."""

from __future__ import annotations

from legal_admin_hub.core.config import LlmConfig

from .base import CompletionService, StreamChunk, TextFragment, to_openai_messages
from .fake import ScriptedCompletionService, tool_call
from .tool_call_accumulator import ToolCallAccumulator


def build_completion_service(cfg: LlmConfig) -> CompletionService:
    if cfg.backend == "scripted":
        return ScriptedCompletionService()
    if cfg.backend == "langchain":
        from .langchain_client import LangChainCompletionService

        return LangChainCompletionService(cfg)

    from .openai_client import OpenAICompletionService

    return OpenAICompletionService(cfg)


__all__ = [
    "CompletionService",
    "ScriptedCompletionService",
    "StreamChunk",
    "TextFragment",
    "ToolCallAccumulator",
    "build_completion_service",
    "to_openai_messages",
    "tool_call",
]
