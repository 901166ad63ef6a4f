"""Mapping from verdicts to HTTP responses, headers and user-facing errors."""

from __future__ import annotations

from fastapi import status
from fastapi.responses import JSONResponse

from admission.core.policies import Policy
from admission.core.verdicts import Denied
from admission.schemas.rate_limit import RateLimitErrorResponse

REJECTION_MESSAGE = "Too many requests. Please try again later."


def rejection_headers(denied: Denied) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(denied.limit),
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": str(denied.reset_at),
        "Retry-After": str(denied.retry_after_seconds),
    }


def build_rejection_response(denied: Denied) -> JSONResponse:
    """Build the 429 response for a denied request.

    Args:
        denied: Denied verdict.

    Returns:
        JSONResponse with ``{error, retryAfter}`` body and rate limit headers.
    """

    body = RateLimitErrorResponse(error=REJECTION_MESSAGE, retry_after=denied.retry_after_seconds)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=body.model_dump(by_alias=True),
        headers=rejection_headers(denied),
    )


def rate_limit_headers(policy: Policy) -> dict[str, str]:
    """Informational headers for successful responses (limit only)."""

    return {"X-RateLimit-Limit": str(policy.max_requests)}


def action_error_message(denied: Denied) -> str:
    return f"Too many requests. Please try again in {denied.retry_after_seconds} seconds."
