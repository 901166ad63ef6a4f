"""Factory selecting the counter store backend from configuration."""

from __future__ import annotations

import logging

import redis.asyncio as redis_asyncio

from admission.adapters.rate_limit.base import CounterStore
from admission.adapters.rate_limit.in_memory import InMemoryCounterStore
from admission.adapters.rate_limit.redis_store import RedisCounterStore
from admission.core.config import Settings

logger = logging.getLogger(__name__)


def create_counter_store(cfg: Settings) -> CounterStore:
    """Instantiate the counter store once per process.

    Uses Redis when ``RATE_LIMIT_REDIS_URL`` is set and a client can be built
    from it; otherwise falls back to the per-process in-memory store.

    Args:
        cfg: Application settings.

    Returns:
        CounterStore: Configured backend.
    """
    rl = cfg.rate_limit

    if rl.redis_url:
        try:
            client = redis_asyncio.from_url(
                rl.redis_url,
                socket_timeout=rl.redis_timeout_seconds,
                socket_connect_timeout=rl.redis_timeout_seconds,
            )
        except ValueError as exc:
            # Unsupported scheme or malformed URL; the client connects lazily.
            logger.error(
                "rate_limit.redis_client_invalid",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
        else:
            logger.info(
                "rate_limit.backend_selected",
                extra={"backend": RedisCounterStore.backend_name, "key_prefix": rl.key_prefix},
            )
            return RedisCounterStore(client, prefix=rl.key_prefix)
    elif not cfg.is_lenient_environment:
        logger.warning(
            "rate_limit.redis_not_configured",
            extra={
                "hint": "Set RATE_LIMIT_REDIS_URL; limits are enforced per process only.",
                "app_env": cfg.app_env,
            },
        )

    logger.info(
        "rate_limit.backend_selected",
        extra={"backend": InMemoryCounterStore.backend_name},
    )
    return InMemoryCounterStore(
        sweep_interval_ms=rl.sweep_interval_seconds * 1000,
        sweep_threshold=rl.sweep_threshold,
    )
