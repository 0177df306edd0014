"""Structured logging.

Log calls pass an event name plus keyword fields; the fields travel as
``LogRecord`` extras and are rendered next to the request context
(``request_id``, ``step``, ``state``, ``errors``) as one JSON object per line,
or as ``key=value`` pairs in text mode.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .context import snapshot

# Attribute names every LogRecord already carries.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

LOG_FORMATS = frozenset({"json", "text"})


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    out: dict[str, Any] = dict(snapshot())
    for k, v in record.__dict__.items():
        if k in _RECORD_ATTRS or k.startswith("_"):
            continue
        try:
            json.dumps(v)
        except TypeError:
            v = repr(v)
        out[k] = v
    return out


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload: dict[str, Any] = {
            "ts": round(record.created, 3),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        line = super().format(record)
        fields = _fields(record)
        if not fields.get("errors"):
            fields.pop("errors", None)
        if fields:
            line += " " + " ".join(f"{k}={json.dumps(v, ensure_ascii=False)}" for k, v in fields.items())
        return line


class KVLogger:
    """``log.info("event", key=value)`` on top of a stdlib logger."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args: object, **fields: object) -> None:
        self._emit(logging.DEBUG, msg, args, fields)

    def info(self, msg: str, *args: object, **fields: object) -> None:
        self._emit(logging.INFO, msg, args, fields)

    def warning(self, msg: str, *args: object, **fields: object) -> None:
        self._emit(logging.WARNING, msg, args, fields)

    def error(self, msg: str, *args: object, **fields: object) -> None:
        self._emit(logging.ERROR, msg, args, fields)

    def exception(self, msg: str, *args: object, **fields: object) -> None:
        fields.setdefault("exc_info", True)
        self._emit(logging.ERROR, msg, args, fields)

    def _emit(self, level: int, msg: str, args: tuple[object, ...], fields: dict[str, object]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        exc_info = fields.pop("exc_info", None)
        stack_info = bool(fields.pop("stack_info", False))
        self._logger.log(
            level,
            msg,
            *args,
            extra=_as_extra(fields),
            exc_info=exc_info,  # type: ignore[arg-type]
            stack_info=stack_info,
            stacklevel=3,
        )


def _as_extra(fields: dict[str, object]) -> dict[str, object]:
    extra: dict[str, object] = {}
    nested = fields.pop("extra", None)
    if isinstance(nested, dict):
        fields = {**nested, **fields}
    elif nested is not None:
        fields = {"extra": repr(nested), **fields}

    for k, v in fields.items():
        # logging refuses extras that shadow record attributes.
        extra[f"x_{k}" if k in _RECORD_ATTRS else k] = v
    return extra


_configured = False


def configure_logging(level: str = "INFO", *, fmt: str = "json", force: bool = False) -> None:
    """Install one stderr handler on the root logger (idempotent unless ``force``)."""

    global _configured
    if _configured and not force:
        return
    if fmt not in LOG_FORMATS:
        raise ValueError(f"unknown log format {fmt!r}")

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter() if fmt == "json" else _TextFormatter())

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()
    root.addHandler(handler)

    # uvicorn's own loggers propagate to ours.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
        logging.getLogger(name).propagate = True

    _configured = True


def get_logger(name: str = "legal_admin_hub") -> KVLogger:
    return KVLogger(logging.getLogger(name))
