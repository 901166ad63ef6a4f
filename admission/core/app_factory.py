"""Application factory for FastAPI app.

Centralizes app construction (limiter, middleware, handlers, routers) so
tests can build an app around their own limiter and clock.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from admission.api.routes import health_router, policies_router, teapot_router
from admission.core.config import settings
from admission.core.exception_handlers import setup_exception_handlers
from admission.core.logging import configure_logging
from admission.core.middleware import request_id_middleware
from admission.core.rate_limit import RateLimiter


def create_app(rate_limiter: RateLimiter | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to install; built from settings when omitted.
            The counter store inside it lives as long as the app.

    Returns:
        Configured FastAPI app with limiter, middleware, handlers and routers.
    """
    # Logging first so backend selection logs are formatted as desired
    configure_logging(settings.log)

    limiter = rate_limiter or RateLimiter.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await limiter.close()

    app = FastAPI(
        title="Request Admission API",
        description=(
            "Request-admission rate limiter: per-action policies, Redis or "
            "in-memory counting, 429 responses with X-RateLimit-* headers."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.rate_limiter = limiter

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(teapot_router)
    app.include_router(policies_router, prefix="/v1")

    return app
