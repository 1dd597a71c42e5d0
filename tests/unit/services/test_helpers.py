"""Tests for services/_helpers.py: safe numeric conversion and HTTP client setup."""

from __future__ import annotations

import math

import httpx
import pytest

from Market_Copilot.services._helpers import build_http_client, safe_float, safe_int

# ---------------------------------------------------------------------------
# safe_float
# ---------------------------------------------------------------------------


class TestSafeFloat:
    """Tests for safe_float()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1.085, 1.085),
            (3, 3.0),
            ("2348.50", 2348.5),
            (" 0.1234% ", 0.1234),
            ("-0.25%", -0.25),
        ],
    )
    def test_converts(self, value: object, expected: float) -> None:
        assert safe_float(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "", "n/a", math.nan, math.inf, True, [1.0]])
    def test_rejects(self, value: object) -> None:
        assert safe_float(value) is None


class TestSafeInt:
    """Tests for safe_int()."""

    def test_truncates(self) -> None:
        assert safe_int("1250000.7") == 1_250_000  # noqa: PLR2004

    @pytest.mark.parametrize("value", [None, "abc", -5, math.nan])
    def test_bad_input_is_zero(self, value: object) -> None:
        assert safe_int(value) == 0


class TestBuildHttpClient:
    """Tests for build_http_client()."""

    @pytest.mark.asyncio()
    async def test_uses_timeout_and_transport(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        client = build_http_client(2.5, transport=transport)
        try:
            assert client.timeout.connect == pytest.approx(2.5)
            response = await client.get("https://example.test/ping")
            assert response.json() == {"ok": True}
        finally:
            await client.aclose()
