"""Tool registry, input schemas, handlers and the executor."""

from __future__ import annotations

from .handlers import HandlerContext
from .registry import DEFAULT_DEFINITIONS, ToolDefinition, ToolRegistry, build_default_registry
from .runtime import ToolExecutor, validate_arguments

__all__ = [
    "DEFAULT_DEFINITIONS",
    "HandlerContext",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistry",
    "build_default_registry",
    "validate_arguments",
]
