"""Admission verdicts returned by the limiter facade. Derived, never stored."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Allowed:
    """Request admitted. ``remaining``/``reset_at`` are None when unknown (fail-open)."""

    limit: int
    remaining: int | None = None
    reset_at: int | None = None


@dataclass(frozen=True)
class Denied:
    """Request rejected.

    Attributes:
        limit: Max requests per window.
        reset_at: Epoch milliseconds when the window ends.
        retry_after_seconds: Upper bound on the wait until a slot reopens.
        remaining: Always 0.
    """

    limit: int
    reset_at: int
    retry_after_seconds: int
    remaining: int = 0


Verdict = Allowed | Denied


@dataclass(frozen=True)
class ActionResult:
    """Verdict shape for callers without an HTTP request (server actions)."""

    success: bool
    error: str | None = None
