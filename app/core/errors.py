"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    min_length: int
    max_length: int
    actual_length: int
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    user_id: str
    request_id: str
    context: NotRequired[dict[str, Any]]


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
    """Raised when request input fails validation."""


class AuthenticationAppError(AppError):
    """Raised when a private procedure is called without a valid session."""


class InternalAppError(AppError):
    """Raised when the service cannot produce a complete response."""


class RateLimitAppError(AppError):
    """Raised when a caller exhausted their budget for the current window."""
