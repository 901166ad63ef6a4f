"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment before settings are imported so no developer .env
file or Redis URL leaks into the test run.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.pop("RATE_LIMIT_REDIS_URL", None)
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from admission.adapters.rate_limit.in_memory import InMemoryCounterStore
from admission.core.app_factory import create_app
from admission.core.policies import PolicyResolver
from admission.core.rate_limit import RateLimiter


class FakeClock:
    """Controllable time source returning UNIX seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryCounterStore:
    return InMemoryCounterStore()


@pytest.fixture
def limiter(memory_store: InMemoryCounterStore, clock: FakeClock) -> RateLimiter:
    """Production-strength limiter (multiplier 1) over a fresh in-memory store."""
    return RateLimiter(memory_store, PolicyResolver(multiplier=1), clock=clock)


@pytest.fixture
def client(limiter: RateLimiter) -> TestClient:
    return TestClient(create_app(rate_limiter=limiter))
