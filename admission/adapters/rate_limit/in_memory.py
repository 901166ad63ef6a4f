"""In-memory windowed counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
  This is the degraded mode used when Redis is not configured.
- Thread-safe: the check and the increment share one critical section.
- Expired entries are swept piggyback on incoming requests; there is no
  background thread.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from admission.adapters.rate_limit.base import CounterStore, RateLimitResult, retry_after_seconds
from admission.core.policies import Policy

logger = logging.getLogger(__name__)


@dataclass
class CounterEntry:
    count: int
    reset_at: int


class InMemoryCounterStore(CounterStore):
    """Counter store keeping one entry per bucket key in a dict.

    A window starts with the first request for a key and lasts
    ``policy.window_ms``. The first request after it ends opens a new one.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    backend_name = "memory"

    def __init__(self, *, sweep_interval_ms: int = 60_000, sweep_threshold: int = 1000) -> None:
        """Initialize the store.

        Args:
            sweep_interval_ms: Minimum time between two eviction sweeps.
            sweep_threshold: A sweep only runs when more entries than this
                are held.

        Raises:
            ValueError: If sweep_interval_ms or sweep_threshold are invalid.
        """
        if sweep_interval_ms < 1:
            raise ValueError("sweep_interval_ms must be >= 1")
        if sweep_threshold < 0:
            raise ValueError("sweep_threshold must be >= 0")

        self._sweep_interval_ms = sweep_interval_ms
        self._sweep_threshold = sweep_threshold
        self._lock = threading.Lock()
        self._entries: dict[str, CounterEntry] = {}
        self._last_sweep_ms: int | None = None

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryCounterStore(size={len(self._entries)}, "
            f"sweep_interval_ms={self._sweep_interval_ms}, "
            f"sweep_threshold={self._sweep_threshold})"
        )

    async def check_and_increment(self, key: str, policy: Policy, now_ms: int) -> RateLimitResult:
        return self.hit(key, policy, now_ms)

    def hit(self, key: str, policy: Policy, now_ms: int) -> RateLimitResult:
        """Synchronous check-and-increment; never blocks on I/O.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            self._maybe_sweep_locked(now_ms)

            entry = self._entries.get(key)
            if entry is None or entry.reset_at <= now_ms:
                entry = CounterEntry(count=1, reset_at=now_ms + policy.window_ms)
                self._entries[key] = entry
                return self._allowed(entry, policy)

            if entry.count < policy.max_requests:
                entry.count += 1
                return self._allowed(entry, policy)

            return RateLimitResult(
                allowed=False,
                limit=policy.max_requests,
                remaining=0,
                reset_at=entry.reset_at,
                retry_after_seconds=retry_after_seconds(entry.reset_at, now_ms),
            )

    def reset(self, key: str) -> bool:
        """Drop the bucket for ``key``. Returns whether one existed."""

        with self._lock:
            return self._entries.pop(key, None) is not None

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def _allowed(self, entry: CounterEntry, policy: Policy) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=policy.max_requests,
            remaining=max(0, policy.max_requests - entry.count),
            reset_at=entry.reset_at,
            retry_after_seconds=None,
        )

    def _maybe_sweep_locked(self, now_ms: int) -> None:
        if len(self._entries) <= self._sweep_threshold:
            return
        if self._last_sweep_ms is not None and now_ms - self._last_sweep_ms < self._sweep_interval_ms:
            return

        self._last_sweep_ms = now_ms
        expired = [k for k, entry in self._entries.items() if entry.reset_at <= now_ms]
        for key in expired:
            del self._entries[key]

        logger.debug(
            "rate_limit.sweep",
            extra={"evicted": len(expired), "size": len(self._entries)},
        )
