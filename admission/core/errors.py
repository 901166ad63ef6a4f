"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

if TYPE_CHECKING:
    from admission.core.verdicts import Denied


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    action: str
    backend: str
    limit: int
    retry_after: int
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
    """Raised when input/config validation fails."""


class RateLimitBackendError(AppError):
    """Raised when the distributed counter store cannot be reached or errors."""


class RateLimitExceededAppError(AppError):
    """Raised by the FastAPI dependency when a request is denied.

    Carries the verdict so the exception handler can render the 429 body
    and rate limit headers.
    """

    def __init__(self, denied: "Denied", action: str) -> None:
        super().__init__(
            code="rate_limit_exceeded",
            message="Too many requests. Please try again later.",
            details={
                "action": action,
                "limit": denied.limit,
                "retry_after": denied.retry_after_seconds,
            },
        )
        self.denied = denied
