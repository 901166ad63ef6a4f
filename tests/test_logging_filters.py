"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from admission.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identity,
    set_request_id,
)


@pytest.fixture
def capture() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_client_identities_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "rate_limit.debug",
        extra={
            "identity": "203.0.113.7",
            "client_ip": "198.51.100.1",
            "key_hash": hash_identity("203.0.113.7"),
        },
    )

    output = stream.getvalue()
    assert "203.0.113.7" not in output
    assert "198.51.100.1" not in output
    assert "[REDACTED]" in output
    assert hash_identity("203.0.113.7") in output


def test_backend_credentials_are_redacted(capture):
    logger, stream = capture

    logger.info("rate_limit.backend_selected", extra={"redis_url": "redis://:s3cret@cache:6379/0"})

    assert "s3cret" not in stream.getvalue()


def test_nested_headers_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "http.request",
        extra={"headers": {"X-Forwarded-For": "192.0.2.3", "user-agent": "pytest"}},
    )

    output = stream.getvalue()
    assert "192.0.2.3" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.warning(
        "rate_limit.exceeded",
        extra={"action": "checkout", "limit": 10, "retry_after_s": 42, "backend": "memory"},
    )

    data = json.loads(stream.getvalue())
    assert data["message"] == "rate_limit.exceeded"
    assert data["level"] == "warning"
    assert data["action"] == "checkout"
    assert data["retry_after_s"] == 42
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(capture):
    logger, stream = capture

    set_request_id("req-abc")
    try:
        logger.info("rate_limit.allowed")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-abc"


def test_hash_identity_is_stable_and_short():
    assert hash_identity("1.2.3.4") == hash_identity("1.2.3.4")
    assert hash_identity("1.2.3.4") != hash_identity("1.2.3.5")
    assert len(hash_identity("1.2.3.4")) == 16
