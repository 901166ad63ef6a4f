"""Redis-backed counter store shared by every process.

The check and the increment run server-side in one Lua script, so every
process observes the same total order of requests per bucket key. Window
expiry is Redis' own key TTL, which also garbage-collects idle buckets.
"""

from __future__ import annotations

import asyncio
import logging
import threading

from redis.asyncio import Redis
from redis.commands.core import AsyncScript
from redis.exceptions import RedisError

from admission.adapters.rate_limit.base import CounterStore, RateLimitResult, retry_after_seconds
from admission.core.errors import RateLimitBackendError
from admission.core.policies import Action, Policy

logger = logging.getLogger(__name__)


# KEYS:
#   1: bucket key
#
# ARGV:
#   1: max_requests
#   2: window_ms
#
# Returns {allowed (1|0), count, ttl_ms}
_CHECK_AND_INCREMENT_LUA = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window_ms = tonumber(ARGV[2])

local current = redis.call('GET', key)
local ttl = redis.call('PTTL', key)
if not current or ttl < 0 then
    redis.call('SET', key, 1, 'PX', window_ms)
    return {1, 1, window_ms}
end

current = tonumber(current)
if current < limit then
    current = redis.call('INCR', key)
    return {1, current, ttl}
end

return {0, current, ttl}
"""


class _ActionLimiter:
    """Script handle bound to one action's key namespace.

    The policy is passed on every call, so stores shared between limiters
    with different multipliers count against the caller's own budget.
    """

    def __init__(self, client: Redis, prefix: str) -> None:
        self._prefix = prefix
        self._script: AsyncScript = client.register_script(_CHECK_AND_INCREMENT_LUA)

    async def limit(self, key: str, policy: Policy, now_ms: int) -> RateLimitResult:
        allowed, count, ttl_ms = await self._script(
            keys=[f"{self._prefix}:{key}"],
            args=[policy.max_requests, policy.window_ms],
        )
        reset_at = now_ms + max(0, int(ttl_ms))
        max_requests = policy.max_requests

        if int(allowed):
            return RateLimitResult(
                allowed=True,
                limit=max_requests,
                remaining=max(0, max_requests - int(count)),
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=max_requests,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=retry_after_seconds(reset_at, now_ms),
        )


class RedisCounterStore(CounterStore):
    """Distributed counter store using an async Redis client.

    One ``_ActionLimiter`` per action is built on first use and cached for the
    lifetime of the store. Backend failures surface as
    ``RateLimitBackendError``; the facade decides whether to fail open.
    """

    backend_name = "redis"

    def __init__(self, client: Redis, *, prefix: str = "admission") -> None:
        self._client = client
        self._prefix = prefix
        self._limiters: dict[Action, _ActionLimiter] = {}
        self._registry_lock = threading.Lock()

    def _limiter_for(self, policy: Policy) -> _ActionLimiter:
        limiter = self._limiters.get(policy.action)
        if limiter is not None:
            return limiter

        with self._registry_lock:
            limiter = self._limiters.get(policy.action)
            if limiter is None:
                limiter = _ActionLimiter(self._client, self._prefix)
                self._limiters[policy.action] = limiter
                logger.debug(
                    "rate_limit.redis_limiter_created",
                    extra={"action": policy.action.value},
                )
            return limiter

    async def check_and_increment(self, key: str, policy: Policy, now_ms: int) -> RateLimitResult:
        """Run the atomic check-and-increment script for ``key``.

        Raises:
            RateLimitBackendError: On any Redis, network or timeout failure.
        """
        limiter = self._limiter_for(policy)
        try:
            return await limiter.limit(key, policy, now_ms)
        except (RedisError, OSError, asyncio.TimeoutError) as exc:
            raise RateLimitBackendError(
                code="rate_limit_backend_unavailable",
                message=f"Redis rate limit call failed: {type(exc).__name__}",
                details={"backend": self.backend_name, "action": policy.action.value},
            ) from exc

    async def close(self) -> None:
        await self._client.aclose()
