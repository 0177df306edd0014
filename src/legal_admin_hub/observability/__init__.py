from __future__ import annotations

from .context import add_error, bind_context, set_state, set_step
from .logging import configure_logging, get_logger

__all__ = ["add_error", "bind_context", "configure_logging", "get_logger", "set_state", "set_step"]
