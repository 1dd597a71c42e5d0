"""Shared helpers for provider modules: safe numeric conversion and HTTP setup."""

from __future__ import annotations

import math
from typing import Final

import httpx

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------

DEFAULT_PROVIDER_TIMEOUT_SECONDS: Final[float] = 5.0
EXTERNAL_CALL_TIMEOUT_SECONDS: Final[float] = 30.0
HTTP_MAX_CONNECTIONS: Final[int] = 10
HTTP_MAX_KEEPALIVE: Final[int] = 5


# ---------------------------------------------------------------------------
# Safe type conversions
# ---------------------------------------------------------------------------


def safe_float(value: object) -> float | None:
    """Convert *value* to a finite float, or None when that is impossible.

    Accepts numbers and numeric strings, including a trailing ``%`` as
    used by Alpha Vantage's ``change percent`` field.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        text = str(value).strip().rstrip("%")
        float_val = float(text)
    except (ValueError, TypeError):
        return None
    if math.isnan(float_val) or math.isinf(float_val):
        return None
    return float_val


def safe_int(value: object) -> int:
    """Convert a numeric value to a non-negative int, treating bad input as 0."""
    float_val = safe_float(value)
    if float_val is None or float_val < 0:
        return 0
    return int(float_val)


def build_http_client(
    timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared ``httpx.AsyncClient`` used by an HTTP provider."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        limits=httpx.Limits(
            max_connections=HTTP_MAX_CONNECTIONS,
            max_keepalive_connections=HTTP_MAX_KEEPALIVE,
        ),
        transport=transport,
    )
