"""Tests for VWAP."""

from collections.abc import Callable

import pytest

from Market_Copilot.indicators.volume import vwap
from Market_Copilot.models import Bar, BarSeries, Instrument


class TestVWAP:
    """Tests for the volume-weighted average of the typical price."""

    def test_empty(self) -> None:
        assert vwap([]) == 0.0

    @pytest.mark.parametrize("volume", [1, 500, 2_000_000])
    def test_single_bar_is_typical_price(
        self,
        volume: int,
        bars_factory: Callable[..., list[Bar]],
    ) -> None:
        (bar,) = bars_factory([1.0850], volume=volume)
        expected = (bar.high + bar.low + bar.close) / 3
        assert vwap([bar]) == pytest.approx(expected)

    def test_zero_volume(self, bars_factory: Callable[..., list[Bar]]) -> None:
        assert vwap(bars_factory([1.08, 1.09, 1.10], volume=0)) == 0.0

    def test_weighted_by_volume(self, bars_factory: Callable[..., list[Bar]]) -> None:
        low_bar, high_bar = bars_factory([100.0, 200.0])
        heavy_high = high_bar.model_copy(update={"volume": 3000})
        typical_low = (low_bar.high + low_bar.low + low_bar.close) / 3
        typical_high = (high_bar.high + high_bar.low + high_bar.close) / 3

        result = vwap([low_bar, heavy_high])

        expected = (typical_low * 1000 + typical_high * 3000) / 4000
        assert result == pytest.approx(expected)
        assert result > (typical_low + typical_high) / 2

    def test_accepts_bar_series(self, sample_bar_series: BarSeries) -> None:
        assert vwap(sample_bar_series) == pytest.approx(vwap(sample_bar_series.bars))

    def test_within_price_range(self, sample_bar_series: BarSeries) -> None:
        result = vwap(sample_bar_series)
        assert min(b.low for b in sample_bar_series.bars) <= result
        assert result <= max(b.high for b in sample_bar_series.bars)
        assert sample_bar_series.symbol is Instrument.EURUSD
