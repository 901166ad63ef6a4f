from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from admission.core.policies import Action
from admission.core.rate_limit import RateLimiter, get_rate_limiter
from admission.core.responses import rate_limit_headers
from admission.schemas.rate_limit import PolicyResponse

router = APIRouter(tags=["Rate limit"])


@router.get("/rate-limit/{action}", response_model=PolicyResponse)
def get_policy(
    action: Action,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> PolicyResponse:
    """Return the effective policy for ``action`` (not counted against it).

    Unknown actions are rejected with 422 by path validation against the
    closed ``Action`` enum.
    """

    policy = limiter.policy(action)
    response.headers.update(rate_limit_headers(policy))
    return PolicyResponse(
        action=action.value,
        max_requests=policy.max_requests,
        window_ms=policy.window_ms,
        multiplier=limiter.resolver.multiplier,
        backend=limiter.store.backend_name,
    )
