"""Request-admission limiter facade.

This module wires the counter store adapters into callers.

Design goals:
- Injected state: the limiter owns its store; the app keeps one instance on
  ``app.state`` rather than a hidden module-level singleton.
- Two call shapes sharing one evaluation core: ``gate`` for HTTP handlers
  (returns a 429 response or None) and ``check_action`` for server-side
  actions (returns success/error).
- Fail-open: a broken backend never blocks traffic, except for actions
  explicitly configured to fail closed.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Awaitable, Callable, Iterable

from fastapi import Request
from fastapi.responses import JSONResponse

from admission.adapters.rate_limit.base import CounterStore, build_bucket_key
from admission.adapters.rate_limit.factory import create_counter_store
from admission.core.client_ip import get_client_ip
from admission.core.config import Settings
from admission.core.errors import RateLimitExceededAppError
from admission.core.logging import hash_identity
from admission.core.policies import Action, Policy, PolicyResolver
from admission.core.responses import action_error_message, build_rejection_response
from admission.core.verdicts import ActionResult, Allowed, Denied, Verdict

logger = logging.getLogger(__name__)


def parse_actions(actions_string: str | None) -> frozenset[Action]:
    """Parse a comma-separated list of action names.

    Unknown names are logged and skipped.

    Examples:
        >>> sorted(a.value for a in parse_actions("account-delete, checkout"))
        ['account-delete', 'checkout']
        >>> parse_actions(None)
        frozenset()
    """
    if not actions_string:
        return frozenset()

    actions: set[Action] = set()
    for name in (part.strip() for part in actions_string.split(",")):
        if not name:
            continue
        try:
            actions.add(Action(name))
        except ValueError:
            logger.warning("rate_limit.unknown_action_in_config", extra={"action": name})
    return frozenset(actions)


class RateLimiter:
    """Evaluates admission for (action, identity) pairs against a counter store."""

    def __init__(
        self,
        store: CounterStore,
        resolver: PolicyResolver,
        *,
        clock: Callable[[], float] = time.time,
        enabled: bool = True,
        fail_closed_actions: Iterable[Action] = (),
        edge_header: str | None = None,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store selected at startup.
            resolver: Policy resolver with the environment multiplier applied.
            clock: Time source function returning UNIX time in seconds.
            enabled: When False every request is allowed without counting.
            fail_closed_actions: Actions denied instead of allowed when the
                store errors.
            edge_header: Trusted CDN header carrying the client IP.
        """
        self._store = store
        self._resolver = resolver
        self._clock = clock
        self._enabled = enabled
        self._fail_closed = frozenset(fail_closed_actions)
        self._edge_header = edge_header

    @classmethod
    def from_settings(cls, cfg: Settings, *, store: CounterStore | None = None) -> "RateLimiter":
        """Build the process-wide limiter from configuration."""

        rl = cfg.rate_limit
        return cls(
            store or create_counter_store(cfg),
            PolicyResolver.from_settings(cfg),
            enabled=rl.enabled,
            fail_closed_actions=parse_actions(rl.fail_closed_actions),
            edge_header=rl.trusted_edge_header,
        )

    @property
    def store(self) -> CounterStore:
        return self._store

    @property
    def resolver(self) -> PolicyResolver:
        return self._resolver

    def policy(self, action: Action) -> Policy:
        return self._resolver.resolve(action)

    def client_identity(self, request: Request) -> str:
        return get_client_ip(request, edge_header=self._edge_header)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def evaluate(self, action: Action, identity: str) -> Verdict:
        """Count one request for ``identity`` under ``action``.

        Never raises: store failures are logged and resolved to Allowed
        (or Denied for fail-closed actions).

        Args:
            action: Protected action.
            identity: Client identity (IP address, user id).

        Returns:
            Allowed or Denied verdict.
        """
        policy = self._resolver.resolve(action)
        if not self._enabled:
            return Allowed(limit=policy.max_requests)

        key = build_bucket_key(action.value, identity)
        key_hash = hash_identity(identity)
        now_ms = self._now_ms()

        try:
            result = await self._store.check_and_increment(key, policy, now_ms)
        except Exception as exc:  # noqa: BLE001 - the limiter must never fail its caller
            return self._on_backend_failure(policy, key_hash, now_ms, exc)

        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "action": action.value,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "backend": self._store.backend_name,
                },
            )
            return Allowed(limit=result.limit, remaining=result.remaining, reset_at=result.reset_at)

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "action": action.value,
                "key_hash": key_hash,
                "limit": result.limit,
                "window_ms": policy.window_ms,
                "retry_after_s": retry_after,
                "backend": self._store.backend_name,
            },
        )
        return Denied(limit=result.limit, reset_at=result.reset_at, retry_after_seconds=retry_after)

    def _on_backend_failure(self, policy: Policy, key_hash: str, now_ms: int, exc: Exception) -> Verdict:
        fail_closed = policy.action in self._fail_closed
        logger.error(
            "rate_limit.backend_error",
            extra={
                "action": policy.action.value,
                "key_hash": key_hash,
                "backend": self._store.backend_name,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
                "fail_closed": fail_closed,
            },
        )
        if not fail_closed:
            return Allowed(limit=policy.max_requests)

        return Denied(
            limit=policy.max_requests,
            reset_at=now_ms + policy.window_ms,
            retry_after_seconds=math.ceil(policy.window_ms / 1000),
        )

    async def gate(self, request: Request, action: Action = Action.DEFAULT) -> JSONResponse | None:
        """Gate shape: None to proceed, a 429 response when denied."""

        verdict = await self.evaluate(action, self.client_identity(request))
        if isinstance(verdict, Denied):
            return build_rejection_response(verdict)
        return None

    async def check_action(
        self, identifier: str, action: Action = Action.ADMIN_MUTATION
    ) -> ActionResult:
        """Action shape for callers without a raw request (e.g. a user id)."""

        verdict = await self.evaluate(action, identifier)
        if isinstance(verdict, Denied):
            return ActionResult(success=False, error=action_error_message(verdict))
        return ActionResult(success=True)

    async def close(self) -> None:
        await self._store.close()


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


async def rate_limit_gate(request: Request, action: Action = Action.DEFAULT) -> JSONResponse | None:
    """Gate the current request with the application's limiter.

    Usage inside a handler::

        if (rejection := await rate_limit_gate(request, Action.CHECKOUT)) is not None:
            return rejection
    """

    return await get_rate_limiter(request).gate(request, action)


async def rate_limit_action(
    limiter: RateLimiter, identifier: str, action: Action = Action.ADMIN_MUTATION
) -> ActionResult:
    """Check ``action`` for a caller-supplied identifier such as a user id.

    Usage inside a service::

        result = await rate_limit_action(limiter, user.id, Action.ACCOUNT_DELETE)
        if not result.success:
            return {"error": result.error}
    """

    return await limiter.check_action(identifier, action)


def enforce_rate_limit(action: Action = Action.DEFAULT) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing ``action``'s policy.

    Raises ``RateLimitExceededAppError`` on denial; the registered exception
    handler renders it as a 429 response.
    """

    async def dependency(request: Request) -> None:
        limiter = get_rate_limiter(request)
        verdict = await limiter.evaluate(action, limiter.client_identity(request))
        if isinstance(verdict, Denied):
            raise RateLimitExceededAppError(verdict, action.value)

    return dependency
