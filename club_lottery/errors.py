"""Custom exceptions for centralized error handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error."""

    code: str
    message: str
    status_code: int
    details: Any | None = None


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationError(AppError):
    """Input validation error."""

    def __init__(self, message: str = "Validation error", details: Any | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=400, details=details)


class ConflictError(AppError):
    """Conflict (e.g., unique constraint)."""

    def __init__(self, message: str = "Conflict", details: Any | None = None) -> None:
        super().__init__(code="conflict", message=message, status_code=409, details=details)


class ProviderUnavailableError(AppError):
    """The certified randomness source could not produce a usable result."""

    def __init__(self, message: str = "Randomness provider unavailable", details: Any | None = None) -> None:
        super().__init__(code="provider_unavailable", message=message, status_code=503, details=details)


class DuplicateDrawError(AppError):
    """A live draw already exists (or is running) for the requested date."""

    def __init__(self, message: str = "Draw already conducted", details: Any | None = None) -> None:
        super().__init__(code="duplicate_draw", message=message, status_code=409, details=details)


class EntryLockedError(AppError):
    """Entry can no longer be edited."""

    def __init__(self, message: str = "Entry is locked", details: Any | None = None) -> None:
        super().__init__(code="entry_locked", message=message, status_code=409, details=details)


class NotificationSendError(AppError):
    """A single email could not be delivered to the email provider."""

    def __init__(self, message: str = "Failed to send email", details: Any | None = None) -> None:
        super().__init__(code="notification_send_failure", message=message, status_code=502, details=details)
