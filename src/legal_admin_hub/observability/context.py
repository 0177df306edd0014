from __future__ import annotations

from contextvars import ContextVar


_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_step: ContextVar[int | None] = ContextVar("step", default=None)
_state: ContextVar[str | None] = ContextVar("state", default=None)
_errors: ContextVar[list[str] | None] = ContextVar("errors", default=None)


def bind_context(*, request_id: str) -> None:
    _request_id.set(request_id)
    _step.set(0)
    _state.set(None)
    _errors.set([])


def set_step(step: int) -> None:
    _step.set(step)


def set_state(state: str) -> None:
    _state.set(state)


def add_error(message: str) -> None:
    errs = list(_errors.get() or [])
    errs.append(message)
    _errors.set(errs)


def snapshot() -> dict[str, object]:
    """Return a snapshot of current observability context for logging."""

    out: dict[str, object] = {}
    if (v := _request_id.get()) is not None:
        out["request_id"] = v
    if (v := _step.get()) is not None:
        out["step"] = v
    if (v := _state.get()) is not None:
        out["state"] = v
    out["errors"] = list(_errors.get() or [])
    return out
