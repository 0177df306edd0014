"""LangChain backend.

Uses ``langchain_openai.ChatOpenAI`` with tools bound via ``bind_tools``;
tool-call arguments arrive as ``tool_call_chunks`` on streamed
``AIMessageChunk`` objects.
"""

from __future__ import annotations

import time
from typing import Any, AsyncIterator, Sequence

import openai
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from legal_admin_hub.core.config import LlmConfig
from legal_admin_hub.core.errors import ModelServiceError
from legal_admin_hub.core.types import Message
from legal_admin_hub.observability import get_logger

from .base import StreamChunk, TextFragment
from .tool_call_accumulator import ToolCallAccumulator


class LangChainCompletionService:
    def __init__(self, cfg: LlmConfig, *, model: Any | None = None) -> None:
        self._cfg = cfg
        if model is None:
            kwargs: dict[str, Any] = {}
            if cfg.temperature is not None:
                kwargs["temperature"] = cfg.temperature
            model = ChatOpenAI(
                model=cfg.model,
                api_key=SecretStr(cfg.api_key),
                base_url=cfg.base_url,
                timeout=cfg.timeout_s,
                max_retries=cfg.max_retries,
                streaming=True,
                **kwargs,
            )
        self._model = model
        self._log = get_logger("legal_admin_hub.llm")

    async def stream(self, messages: Sequence[Message], tools: list[dict[str, Any]]) -> AsyncIterator[StreamChunk]:
        model = self._model.bind_tools(tools) if tools else self._model
        acc = ToolCallAccumulator()
        text_len = 0
        t0 = time.perf_counter()

        try:
            async for chunk in model.astream(to_langchain_messages(messages)):
                text = _chunk_text(getattr(chunk, "content", None))
                if text:
                    text_len += len(text)
                    yield TextFragment(text)

                tool_call_chunks = getattr(chunk, "tool_call_chunks", None)
                if isinstance(tool_call_chunks, list) and tool_call_chunks:
                    acc.add_chunks(tool_call_chunks)
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


def _chunk_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # Content blocks: keep only text blocks.
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text") or ""))
        return "".join(parts)
    return ""


def to_langchain_messages(messages: Sequence[Message]) -> list[BaseMessage]:
    out: list[BaseMessage] = []
    for m in messages:
        if m.role == "system":
            out.append(SystemMessage(content=m.content))
        elif m.role == "user":
            out.append(HumanMessage(content=m.content))
        elif m.role == "tool":
            out.append(ToolMessage(content=m.content, tool_call_id=m.tool_call_id or ""))
        else:
            valid = [
                {"name": tc.name, "args": tc.arguments, "id": tc.id, "type": "tool_call"}
                for tc in m.tool_calls
                if tc.arguments is not None
            ]
            invalid = [
                {
                    "name": tc.name,
                    "args": tc.arguments_json,
                    "id": tc.id,
                    "error": tc.parse_error,
                    "type": "invalid_tool_call",
                }
                for tc in m.tool_calls
                if tc.arguments is None
            ]
            out.append(AIMessage(content=m.content, tool_calls=valid, invalid_tool_calls=invalid))
    return out
