"""OpenAI chat-completions backend (streaming, tool calling)."""

from __future__ import annotations

import time
from typing import Any, AsyncIterator, Sequence

import openai
from openai import AsyncOpenAI

from legal_admin_hub.core.config import LlmConfig
from legal_admin_hub.core.errors import ModelServiceError
from legal_admin_hub.core.types import Message
from legal_admin_hub.observability import get_logger

from .base import StreamChunk, TextFragment, to_openai_messages
from .tool_call_accumulator import ToolCallAccumulator


class OpenAICompletionService:
    def __init__(self, cfg: LlmConfig, *, client: AsyncOpenAI | None = None) -> None:
        self._cfg = cfg
        self._client = client or AsyncOpenAI(
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout=cfg.timeout_s,
            max_retries=cfg.max_retries,
        )
        self._log = get_logger("legal_admin_hub.llm")

    async def stream(self, messages: Sequence[Message], tools: list[dict[str, Any]]) -> AsyncIterator[StreamChunk]:
        kwargs: dict[str, Any] = {
            "model": self._cfg.model,
            "messages": to_openai_messages(messages),
            "stream": True,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        if self._cfg.temperature is not None:
            kwargs["temperature"] = self._cfg.temperature

        acc = ToolCallAccumulator()
        text_len = 0
        t0 = time.perf_counter()

        try:
            stream = await self._client.chat.completions.create(**kwargs)
            async for ev in stream:
                choices = getattr(ev, "choices", None) or []
                if not choices:
                    continue

                delta = getattr(choices[0], "delta", None)
                if delta is None:
                    continue

                content = getattr(delta, "content", None)
                if isinstance(content, str) and content:
                    text_len += len(content)
                    yield TextFragment(content)

                delta_tool_calls = getattr(delta, "tool_calls", None)
                if delta_tool_calls:
                    acc.add_openai_delta(list(delta_tool_calls))
        except openai.APIError as e:
            self._log.warning("model_stream_failed", error_type=type(e).__name__)
            raise ModelServiceError(f"completion service error: {e}") from e

        tool_calls = acc.finalize()
        self._log.info(
            "model_stream_complete",
            latency_ms=round((time.perf_counter() - t0) * 1000, 2),
            assistant_text_len=text_len,
            tool_calls=len(tool_calls),
        )
        for tc in tool_calls:
            yield tc
