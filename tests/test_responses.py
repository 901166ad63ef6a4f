"""Tests for verdict to HTTP response mapping."""

import json

from admission.core.policies import Action, resolve_policy
from admission.core.responses import (
    action_error_message,
    build_rejection_response,
    rate_limit_headers,
)
from admission.core.verdicts import Denied

DENIED = Denied(limit=10, reset_at=1_700_000_030_000, retry_after_seconds=30)


def test_rejection_response_status_and_body() -> None:
    response = build_rejection_response(DENIED)

    assert response.status_code == 429
    assert json.loads(bytes(response.body)) == {
        "error": "Too many requests. Please try again later.",
        "retryAfter": 30,
    }


def test_rejection_response_headers() -> None:
    headers = build_rejection_response(DENIED).headers

    assert headers["X-RateLimit-Limit"] == "10"
    assert headers["X-RateLimit-Remaining"] == "0"
    assert headers["X-RateLimit-Reset"] == "1700000030000"
    assert headers["Retry-After"] == "30"
    assert headers["content-type"] == "application/json"


def test_success_headers_expose_only_the_limit() -> None:
    headers = rate_limit_headers(resolve_policy(Action.CHECKOUT, multiplier=10))

    assert headers == {"X-RateLimit-Limit": "100"}


def test_action_error_message() -> None:
    assert action_error_message(DENIED) == "Too many requests. Please try again in 30 seconds."
