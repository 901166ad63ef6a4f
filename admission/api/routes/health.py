from __future__ import annotations

from fastapi import APIRouter, Depends

from admission.core.rate_limit import RateLimiter, get_rate_limiter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(limiter: RateLimiter = Depends(get_rate_limiter)) -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems. Reports which counter
    store backend this process selected at startup, without touching it.

    Returns:
        dict: ``status`` and ``rate_limit_backend`` (memory or redis).
    """

    return {"status": "ok", "rate_limit_backend": limiter.store.backend_name}
