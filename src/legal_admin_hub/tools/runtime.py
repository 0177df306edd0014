from __future__ import annotations

import asyncio
import time
from typing import Any, AsyncIterator

from pydantic import ValidationError

from legal_admin_hub.core.errors import HandlerError, ToolValidationError
from legal_admin_hub.core.types import ToolCall, ToolResult
from legal_admin_hub.observability import add_error, get_logger

from .handlers import HandlerContext
from .registry import ToolDefinition, ToolRegistry
from .schemas import ToolInput
from .tool_result_codec import error_result


def validate_arguments(definition: ToolDefinition, arguments: dict[str, Any]) -> ToolInput:
    """Validate raw arguments against the tool's input model.

    Raises ToolValidationError naming the first offending field.
    """

    try:
        return definition.input_model.model_validate(arguments)
    except ValidationError as e:
        errors = e.errors()
        first = errors[0] if errors else {}
        loc = first.get("loc") or ()
        field = ".".join(str(p) for p in loc) or None

        if first.get("type") == "missing":
            message = f"missing required field {field!r}"
        else:
            message = f"invalid value for {field!r}: {first.get('msg', 'invalid')}"

        raise ToolValidationError(
            message,
            field=field,
            details={"errors": [{"loc": ".".join(str(p) for p in err.get("loc", ())), "type": err.get("type")} for err in errors]},
        ) from e


class ToolExecutor:
    """Run one ToolCall through validate -> resolve -> invoke.

    Every failure mode is returned as an ``error`` ToolResult. Nothing a
    handler does escapes as an exception, except cancellation.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        context: HandlerContext | None = None,
        handler_timeout_s: float = 30.0,
    ) -> None:
        self._registry = registry
        self._ctx = context or HandlerContext()
        self._timeout_s = float(handler_timeout_s)
        self._log = get_logger("legal_admin_hub.tools")

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def execute(self, call: ToolCall) -> AsyncIterator[ToolResult]:
        definition = self._registry.resolve(call.name)
        if definition is None:
            self._log.info("tool_not_found", tool_call_id=call.id, tool=call.name)
            yield error_result(
                tool_call_id=call.id,
                name=call.name,
                error_type="not_found",
                message=f"unknown tool {call.name!r}",
            )
            return

        if call.arguments is None:
            self._log.info("tool_arguments_unparseable", tool_call_id=call.id, tool=call.name)
            yield error_result(
                tool_call_id=call.id,
                name=call.name,
                error_type="invalid_arguments",
                message=f"tool arguments are not a JSON object: {call.parse_error or 'unparseable'}",
                details={"raw": call.arguments_json[:500]},
            )
            return

        try:
            inp = validate_arguments(definition, call.arguments)
        except ToolValidationError as e:
            self._log.info("tool_validation_failed", tool_call_id=call.id, tool=call.name, field=e.field)
            yield error_result(
                tool_call_id=call.id,
                name=call.name,
                error_type="validation_error",
                message=e.message,
                field=e.field,
                details=e.details,
            )
            return

        async for r in self._invoke(definition, inp, call):
            yield r

    async def execute_to_completion(self, call: ToolCall) -> ToolResult:
        """Drain ``execute`` and return the terminal result."""

        last: ToolResult | None = None
        async for r in self.execute(call):
            last = r
        if last is None or not last.terminal:
            return error_result(
                tool_call_id=call.id,
                name=call.name,
                error_type="incomplete",
                message="tool produced no result",
            )
        return last

    async def _invoke(self, definition: ToolDefinition, inp: ToolInput, call: ToolCall) -> AsyncIterator[ToolResult]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout_s
        t0 = time.perf_counter()
        updates = definition.handler(inp, self._ctx)

        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise asyncio.TimeoutError
                try:
                    update = await asyncio.wait_for(updates.__anext__(), timeout=remaining)
                except StopAsyncIteration:
                    self._log.error("tool_incomplete", tool_call_id=call.id, tool=call.name)
                    add_error(f"tool_incomplete:{call.name}")
                    yield error_result(
                        tool_call_id=call.id,
                        name=call.name,
                        error_type="incomplete",
                        message="handler finished without a result",
                    )
                    return

                result = ToolResult(
                    tool_call_id=call.id,
                    name=call.name,
                    state=update.state,
                    payload=update.payload,
                    error=update.error,
                )
                yield result
                if result.terminal:
                    self._log.info(
                        "tool_done",
                        tool_call_id=call.id,
                        tool=call.name,
                        state=result.state,
                        latency_ms=round((time.perf_counter() - t0) * 1000, 2),
                    )
                    return
        except asyncio.TimeoutError:
            self._log.warning("tool_timeout", tool_call_id=call.id, tool=call.name, timeout_s=self._timeout_s)
            add_error(f"tool_timeout:{call.name}")
            yield error_result(
                tool_call_id=call.id,
                name=call.name,
                error_type="timeout",
                message=f"tool did not finish within {self._timeout_s:g}s",
            )
        except HandlerError as e:
            self._log.info("tool_rejected", tool_call_id=call.id, tool=call.name, error_type=e.error_type)
            yield error_result(
                tool_call_id=call.id,
                name=call.name,
                error_type=e.error_type,
                message=e.message,
                field=e.field,
                details=e.details,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            self._log.exception("tool_error", tool_call_id=call.id, tool=call.name)
            add_error(f"tool_error:{call.name}")
            yield error_result(
                tool_call_id=call.id,
                name=call.name,
                error_type="handler_exception",
                message=str(e) or type(e).__name__,
                details={"exc": type(e).__name__},
            )
        finally:
            await updates.aclose()
