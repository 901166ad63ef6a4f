"""Pydantic schemas for rate limit responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RateLimitErrorResponse(BaseModel):
    """JSON body of a 429 response."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = Field(
        "Too many requests. Please try again later.",
        description="Human-readable rejection message.",
    )
    retry_after: int = Field(
        ...,
        alias="retryAfter",
        ge=0,
        description="Seconds until the client may retry.",
    )


class PolicyResponse(BaseModel):
    """Effective policy for one action (after the environment multiplier)."""

    action: str = Field(..., description="Protected action name.")
    max_requests: int = Field(..., description="Requests admitted per window.")
    window_ms: int = Field(..., description="Window length in milliseconds.")
    multiplier: int = Field(..., description="Environment multiplier applied to max_requests.")
    backend: str = Field(..., description="Counter store backend: memory or redis.")
