"""Counter store adapters.

The limiter counts requests through ``CounterStore``: Redis when configured,
an in-process dict otherwise.
"""

from admission.adapters.rate_limit.base import CounterStore, RateLimitResult
from admission.adapters.rate_limit.factory import create_counter_store
from admission.adapters.rate_limit.in_memory import InMemoryCounterStore
from admission.adapters.rate_limit.redis_store import RedisCounterStore

__all__ = [
    "CounterStore",
    "InMemoryCounterStore",
    "RateLimitResult",
    "RedisCounterStore",
    "create_counter_store",
]
