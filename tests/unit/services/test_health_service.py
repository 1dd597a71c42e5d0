"""Tests for HealthService."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from Market_Copilot.models import Instrument, Quote
from Market_Copilot.services.health import HealthService
from Market_Copilot.services.quote_providers import QuoteProvider
from Market_Copilot.utils.exceptions import ProviderUnavailableError


class StubProvider(QuoteProvider):
    """Provider whose fetch is an AsyncMock."""

    def __init__(self, name: str, fetch: AsyncMock) -> None:
        self.name = name
        self._fetch = fetch

    async def fetch(self, symbol: Instrument) -> Quote:
        quote: Quote = await self._fetch(symbol)
        return quote


def _coordinator(backends: dict[str, bool]) -> AsyncMock:
    coordinator = AsyncMock()
    coordinator.test_all_backends.return_value = backends
    return coordinator


class TestHealthService:
    """Tests for HealthService.check_all() and check_providers()."""

    @pytest.mark.asyncio()
    async def test_reports_each_provider(self, sample_quote: Quote) -> None:
        up = StubProvider("finnhub", AsyncMock(return_value=sample_quote))
        down = StubProvider(
            "alpha_vantage",
            AsyncMock(side_effect=ProviderUnavailableError("503", symbol="EURUSD", source="av")),
        )
        service = HealthService([up, down], _coordinator({}))

        results = await service.check_providers()

        assert results == {"finnhub": True, "alpha_vantage": False}

    @pytest.mark.asyncio()
    async def test_slow_provider_marked_down(self, sample_quote: Quote) -> None:
        async def slow(symbol: Instrument) -> Quote:  # noqa: ARG001
            await asyncio.sleep(1)
            return sample_quote

        service = HealthService(
            [StubProvider("metals_live", AsyncMock(side_effect=slow))],
            _coordinator({}),
            provider_timeout=0.01,
        )

        assert await service.check_providers() == {"metals_live": False}

    @pytest.mark.asyncio()
    async def test_check_all_combines_results(self, sample_quote: Quote) -> None:
        provider = StubProvider("finnhub", AsyncMock(return_value=sample_quote))
        coordinator = _coordinator({"claude": False, "deepseek": True, "local": True})
        service = HealthService([provider], coordinator)

        status = await service.check_all()

        assert status.quote_providers == {"finnhub": True}
        assert status.analysis_backends["deepseek"] is True
        assert status.any_remote_backend is True
        coordinator.test_all_backends.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_local_only_is_not_remote(self) -> None:
        coordinator = _coordinator({"claude": False, "deepseek": False, "local": True})
        service = HealthService([], coordinator)

        status = await service.check_all()

        assert status.quote_providers == {}
        assert status.any_remote_backend is False
