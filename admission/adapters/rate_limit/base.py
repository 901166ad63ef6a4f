"""Counter store interfaces.

The limiter facade depends on this abstraction, not on a concrete backend,
so the in-memory store and the Redis store are interchangeable and selected
once at startup.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from admission.core.policies import Policy


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a check-and-increment operation.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: Epoch milliseconds when the current window ends.
        retry_after_seconds: Seconds until a slot reopens, set only when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


def retry_after_seconds(reset_at: int, now_ms: int) -> int:
    """Whole seconds until ``reset_at``, never negative."""

    return max(0, math.ceil((reset_at - now_ms) / 1000))


def build_bucket_key(action: str, identity: str) -> str:
    """Namespace an identity under its action: ``action:identity``."""

    return f"{action}:{identity}"


class CounterStore(ABC):
    """Interface for windowed request counters."""

    backend_name: str = "abstract"

    @abstractmethod
    async def check_and_increment(self, key: str, policy: Policy, now_ms: int) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it is admitted.

        Args:
            key: Bucket key built with ``build_bucket_key``.
            policy: Resolved policy for the key's action.
            now_ms: Current time in epoch milliseconds.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
