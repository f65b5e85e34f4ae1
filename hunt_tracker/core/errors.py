"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    hint: str
    pattern: str
    retry_after: int
    backend: str
    operation: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class InvalidCodeError(ValidationAppError):
    """Raised when a scanned code is not part of the component catalog."""

    def __init__(self) -> None:
        super().__init__(code="invalid_code", message="Invalid QR Code")


class InvalidRegistrationFormatError(ValidationAppError):
    """Raised when a registration number is not uppercase alphanumeric."""

    def __init__(self, *, pattern: str) -> None:
        super().__init__(
            code="invalid_registration_number",
            message="Invalid Registration Number. Use only letters and numbers.",
            details={"pattern": pattern},
        )


class RateLimitedError(AppError):
    """Raised when scan admission control denies a request."""

    def __init__(self, *, retry_after: int, limit: int, reset_at: int) -> None:
        super().__init__(
            code="rate_limited",
            message="Please wait a minute before scanning again.",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after
        self.limit = limit
        self.reset_at = reset_at


class StorageUnavailableError(AppError):
    """Raised when the progress store is unreachable or times out."""

    def __init__(self, *, operation: str, backend: str, reason: str = "unavailable") -> None:
        super().__init__(
            code="storage_unavailable",
            message="Progress storage is temporarily unavailable. Please try again.",
            details={"operation": operation, "backend": backend, "hint": reason},
        )
