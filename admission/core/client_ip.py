"""Client identity extraction from proxy headers."""

from __future__ import annotations

from fastapi import Request

from admission.core.config import settings

REAL_IP_HEADER = "X-Real-IP"
FORWARDED_FOR_HEADER = "X-Forwarded-For"
LOOPBACK_FALLBACK = "127.0.0.1"


def get_client_ip(request: Request, *, edge_header: str | None = None) -> str:
    """Return the client IP used as the rate limit identity.

    Precedence, first non-empty wins: trusted edge header (CDN), reverse
    proxy real-IP header, first entry of X-Forwarded-For, loopback.

    Args:
        request: Incoming request.
        edge_header: Overrides ``RATE_LIMIT_TRUSTED_EDGE_HEADER``.

    Returns:
        Client IP string.
    """

    headers = request.headers
    edge_header = edge_header or settings.rate_limit.trusted_edge_header

    for name in (edge_header, REAL_IP_HEADER):
        value = (headers.get(name) or "").strip()
        if value:
            return value

    forwarded = headers.get(FORWARDED_FOR_HEADER) or ""
    first = forwarded.split(",")[0].strip()
    if first:
        return first

    return LOOPBACK_FALLBACK
