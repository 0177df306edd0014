from __future__ import annotations

from typing import Any


class HubError(Exception):
    """Base exception for this project."""


class ConfigError(HubError):
    """Raised when configuration is invalid or incomplete."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class ToolValidationError(HubError):
    """Tool-call arguments do not satisfy the tool's input schema."""

    def __init__(self, message: str, *, field: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details or {}


class HandlerError(HubError):
    """Structured handler failure.

    Handlers raise this when a collaborator (calendar, email, record store,
    telephony) refuses or cannot be reached. The executor folds it into an
    ``error`` ToolResult instead of letting it escape the dispatch loop.
    """

    def __init__(
        self,
        error_type: str,
        message: str,
        *,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.field = field
        self.details = details or {}


class ModelServiceError(HubError):
    """The completion service failed; the request cannot continue."""


class MalformedRequestError(HubError):
    """Inbound request body does not match the expected message shape."""

    def __init__(self, message: str, *, status_code: int = 422, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or []
