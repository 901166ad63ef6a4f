"""Window duration parsing.

Policies express their windows the way humans write them ("1 m", "10 m",
"1 h"). This module turns those strings into milliseconds and never fails:
a malformed window falls back to one minute so a typo in a policy table can
not break the request path.
"""

from __future__ import annotations

import re

DEFAULT_WINDOW_MS = 60_000

_UNIT_MS = {
    "ms": 1,
    "s": 1_000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}

_WINDOW_RE = re.compile(r"^(\d+)\s*(ms|s|m|h|d)$", re.IGNORECASE)


def parse_window(spec: str) -> int:
    """Parse a window spec such as ``"10 m"`` into milliseconds.

    Args:
        spec: ``<integer><unit>`` with unit one of ms, s, m, h, d
            (case-insensitive, optional whitespace before the unit).

    Returns:
        Duration in milliseconds, or ``DEFAULT_WINDOW_MS`` when the spec is
        malformed or its amount is not positive.

    Examples:
        >>> parse_window("10 m")
        600000
        >>> parse_window("garbage")
        60000
    """

    if not isinstance(spec, str):
        return DEFAULT_WINDOW_MS

    match = _WINDOW_RE.match(spec.strip())
    if not match:
        return DEFAULT_WINDOW_MS

    amount = int(match.group(1))
    if amount <= 0:
        return DEFAULT_WINDOW_MS

    return amount * _UNIT_MS[match.group(2).lower()]
