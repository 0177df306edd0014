from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Sequence

from legal_admin_hub.core.errors import ModelServiceError
from legal_admin_hub.core.types import Message, ToolCall, ToolResult
from legal_admin_hub.llm.base import CompletionService, StreamChunk, TextFragment
from legal_admin_hub.observability import add_error, bind_context, get_logger, set_state, set_step
from legal_admin_hub.observability.ids import new_request_id
from legal_admin_hub.tools.registry import ToolRegistry
from legal_admin_hub.tools.runtime import ToolExecutor
from legal_admin_hub.tools.tool_result_codec import error_result, tool_message_from_result

from .conversation import Conversation
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
from .prompts import MAX_STEPS_NOTICE, SYSTEM_PROMPT

DisconnectCheck = Callable[[], Awaitable[bool]]

_TRANSITIONS: dict[str, frozenset[str]] = {
    "awaiting_model": frozenset({"executing_tools", "done", "failed"}),
    "executing_tools": frozenset({"awaiting_model", "failed"}),
    "done": frozenset(),
    "failed": frozenset(),
}

# Handler tasks outlive a disconnected consumer; keep strong references.
_background_tasks: set[asyncio.Task[Any]] = set()

_WORKER_DONE = object()


@dataclass(slots=True)
class DispatchRun:
    """Mutable state of one request. Never shared between requests."""

    request_id: str
    conversation: Conversation
    state: str = "awaiting_model"
    steps: int = 0
    text_parts: list[str] = field(default_factory=list)

    def transition(self, new_state: str) -> None:
        if new_state == self.state:
            return
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal dispatch transition {self.state} -> {new_state}")
        self.state = new_state
        set_state(new_state)

    @property
    def text(self) -> str:
        return "".join(self.text_parts)


class DispatchLoop:
    """Alternate between the model and the tools until the model answers.

    One ``run`` per request. The loop object itself only holds immutable
    collaborators and settings, so it can be shared by concurrent requests.
    """

    def __init__(
        self,
        *,
        completion: CompletionService,
        executor: ToolExecutor,
        max_steps: int = 5,
        step_timeout_s: float = 60.0,
        max_concurrency: int = 4,
        system_prompt: str | None = None,
    ) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be >= 1")
        self._completion = completion
        self._executor = executor
        self._max_steps = int(max_steps)
        self._step_timeout_s = float(step_timeout_s)
        self._max_concurrency = max(1, int(max_concurrency))
        self._system_prompt = system_prompt if system_prompt is not None else SYSTEM_PROMPT
        self._log = get_logger("legal_admin_hub.dispatch")

    @property
    def registry(self) -> ToolRegistry:
        return self._executor.registry

    @property
    def max_steps(self) -> int:
        return self._max_steps

    async def run(
        self,
        history: Sequence[Message],
        *,
        is_disconnected: DisconnectCheck | None = None,
        request_id: str | None = None,
    ) -> AsyncIterator[DispatchEvent]:
        """Drive one request; always ends with ``Finished`` or ``Failed``."""

        initial = list(history)
        if self._system_prompt:
            initial.insert(0, Message(role="system", content=self._system_prompt))
        run = DispatchRun(request_id=request_id or new_request_id(), conversation=Conversation(initial))
        bind_context(request_id=run.request_id)
        set_state(run.state)

        tools = self.registry.openai_tools()
        t0 = time.perf_counter()
        self._log.info("dispatch_start", history=len(history), tools=len(tools), max_steps=self._max_steps)

        try:
            while True:
                if is_disconnected is not None and await is_disconnected():
                    self._log.info("client_disconnected", steps=run.steps)
                    run.transition("done")
                    yield Finished(reason="disconnected", steps=run.steps, text=run.text)
                    return

                step_text: list[str] = []
                calls: list[ToolCall] = []
                async for chunk in self._model_turn(run.conversation, tools):
                    if isinstance(chunk, TextFragment):
                        step_text.append(chunk.text)
                        run.text_parts.append(chunk.text)
                        yield TextDelta(chunk.text)
                    else:
                        calls.append(chunk)

                if not calls:
                    run.conversation.append(Message(role="assistant", content="".join(step_text)))
                    run.transition("done")
                    self._finish_log(run, "stop", t0)
                    yield Finished(reason="stop", steps=run.steps, text=run.text)
                    return

                if run.steps >= self._max_steps:
                    self._log.warning("step_budget_exhausted", steps=run.steps, pending_tool_calls=len(calls))
                    add_error("max_steps")
                    if not run.text.strip():
                        run.text_parts.append(MAX_STEPS_NOTICE)
                        yield TextDelta(MAX_STEPS_NOTICE)
                    run.conversation.append(Message(role="assistant", content=run.text))
                    run.transition("done")
                    self._finish_log(run, "max_steps", t0)
                    yield Finished(reason="max_steps", steps=run.steps, text=run.text)
                    return

                run.steps += 1
                set_step(run.steps)
                run.conversation.append(
                    Message(role="assistant", content="".join(step_text), tool_calls=tuple(calls))
                )
                run.transition("executing_tools")

                async for event in self._execute_step(run, calls):
                    yield event

                yield StepFinished(step=run.steps, tool_calls=len(calls))
                run.transition("awaiting_model")
        except ModelServiceError as e:
            self._log.error("model_service_failed", error=str(e), steps=run.steps)
            add_error("model_service_error")
            run.transition("failed")
            yield Failed(error_type="model_service_error", message=str(e), steps=run.steps)
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            self._log.exception("dispatch_error", steps=run.steps)
            add_error("internal_error")
            run.transition("failed")
            yield Failed(error_type="internal_error", message=str(e) or type(e).__name__, steps=run.steps)

    async def collect(self, history: Sequence[Message]) -> list[DispatchEvent]:
        """Run to completion and return every event (tests, CLI)."""

        return [ev async for ev in self.run(history)]

    async def _model_turn(self, conversation: Conversation, tools: list[dict[str, Any]]) -> AsyncIterator[StreamChunk]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._step_timeout_s
        stream = self._completion.stream(conversation.messages, tools)

        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise ModelServiceError(f"model step exceeded {self._step_timeout_s:g}s")
                try:
                    chunk = await asyncio.wait_for(stream.__anext__(), timeout=remaining)
                except StopAsyncIteration:
                    return
                except asyncio.TimeoutError as e:
                    raise ModelServiceError(f"model step exceeded {self._step_timeout_s:g}s") from e
                except (ModelServiceError, asyncio.CancelledError):
                    raise
                except Exception as e:  # noqa: BLE001
                    raise ModelServiceError(f"completion service error: {e}") from e
                yield chunk
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _execute_step(self, run: DispatchRun, calls: list[ToolCall]) -> AsyncIterator[DispatchEvent]:
        step = run.steps
        queue: asyncio.Queue[Any] = asyncio.Queue()
        results: dict[int, ToolResult] = {}
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def worker(index: int, call: ToolCall) -> None:
            try:
                async with semaphore:
                    async for r in self._executor.execute(call):
                        if r.terminal:
                            results[index] = r
                            await queue.put(ToolResultEvent(step=step, result=r))
                        else:
                            await queue.put(ToolProgress(step=step, result=r))
            finally:
                queue.put_nowait(_WORKER_DONE)

        tasks = [asyncio.create_task(worker(i, c)) for i, c in enumerate(calls)]
        for task in tasks:
            _background_tasks.add(task)
            task.add_done_callback(_background_tasks.discard)

        # Announce calls only once their tasks exist.
        for call in calls:
            yield ToolCallStarted(step=step, call=call)

        pending = len(tasks)
        while pending:
            item = await queue.get()
            if item is _WORKER_DONE:
                pending -= 1
                continue
            yield item

        for task in tasks:
            if task.done() and not task.cancelled() and task.exception() is not None:
                self._log.error("tool_worker_crashed", error=repr(task.exception()))

        # Issue order, regardless of completion order.
        for index, call in enumerate(calls):
            result = results.get(index)
            if result is None:
                result = error_result(
                    tool_call_id=call.id,
                    name=call.name,
                    error_type="incomplete",
                    message="tool produced no result",
                )
                yield ToolResultEvent(step=step, result=result)
            run.conversation.append(tool_message_from_result(result))

    def _finish_log(self, run: DispatchRun, reason: str, t0: float) -> None:
        self._log.info(
            "dispatch_done",
            reason=reason,
            steps=run.steps,
            messages=len(run.conversation),
            assistant_text_len=len(run.text),
            latency_ms=round((time.perf_counter() - t0) * 1000, 2),
        )
