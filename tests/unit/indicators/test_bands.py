"""Tests for Bollinger Bands, Fibonacci retracements, and the snapshot builder."""

import math

import pytest

from Market_Copilot.indicators import build_indicator_snapshot
from Market_Copilot.indicators.bands import bollinger, fibonacci
from Market_Copilot.indicators.momentum import macd, rsi
from Market_Copilot.indicators.volume import vwap
from Market_Copilot.models import BarSeries, MacdSignalMode

# ---------------------------------------------------------------------------
# Bollinger tests
# ---------------------------------------------------------------------------


class TestBollinger:
    """Tests for Bollinger Bands with population standard deviation."""

    def test_known_value(self) -> None:
        """Mean 3, population std sqrt(2) for [1..5]."""
        result = bollinger([1.0, 2.0, 3.0, 4.0, 5.0])
        assert result.middle == pytest.approx(3.0)
        assert result.upper == pytest.approx(3.0 + 2 * math.sqrt(2))
        assert result.lower == pytest.approx(3.0 - 2 * math.sqrt(2))

    def test_uses_trailing_period(self) -> None:
        prices = [1000.0] * 5 + [10.0] * 20
        result = bollinger(prices, period=20)
        assert result.middle == pytest.approx(10.0)
        assert result.upper == pytest.approx(10.0)

    def test_ordering(self) -> None:
        prices = [1.08 + 0.002 * ((i * 7) % 5) for i in range(30)]
        result = bollinger(prices)
        assert result.upper >= result.middle >= result.lower

    def test_custom_width(self) -> None:
        narrow = bollinger([1.0, 2.0, 3.0], num_std=1.0)
        wide = bollinger([1.0, 2.0, 3.0], num_std=3.0)
        assert wide.upper - wide.lower == pytest.approx(3 * (narrow.upper - narrow.lower))

    def test_empty(self) -> None:
        result = bollinger([])
        assert (result.upper, result.middle, result.lower) == (0.0, 0.0, 0.0)


# ---------------------------------------------------------------------------
# Fibonacci tests
# ---------------------------------------------------------------------------


class TestFibonacci:
    """Tests for retracement levels between the max and min close."""

    def test_known_value(self) -> None:
        result = fibonacci([10.0, 20.0, 15.0])
        assert result.level_618 == pytest.approx(13.82)
        assert result.level_50 == pytest.approx(15.0)
        assert result.level_382 == pytest.approx(16.18)

    def test_order_independent(self) -> None:
        assert fibonacci([20.0, 10.0]) == fibonacci([10.0, 20.0])

    def test_flat(self) -> None:
        result = fibonacci([2350.0] * 5)
        assert result.level_618 == result.level_50 == result.level_382 == 2350.0  # noqa: PLR2004

    def test_empty(self) -> None:
        assert fibonacci([]).level_50 == 0.0


# ---------------------------------------------------------------------------
# Snapshot tests
# ---------------------------------------------------------------------------


class TestBuildIndicatorSnapshot:
    """Tests for build_indicator_snapshot()."""

    def test_matches_individual_indicators(self, sample_bar_series: BarSeries) -> None:
        closes = sample_bar_series.closes()
        snapshot = build_indicator_snapshot(sample_bar_series)

        assert snapshot.symbol == sample_bar_series.symbol
        assert snapshot.interval == "1H"
        assert snapshot.rsi == pytest.approx(rsi(closes))
        assert snapshot.macd == macd(closes)
        assert snapshot.vwap == pytest.approx(vwap(sample_bar_series))
        assert snapshot.bollinger == bollinger(closes)
        assert snapshot.fibonacci == fibonacci(closes)

    def test_pure_function(self, sample_bar_series: BarSeries) -> None:
        assert build_indicator_snapshot(sample_bar_series) == build_indicator_snapshot(
            sample_bar_series
        )

    def test_signal_mode_forwarded(self, sample_bar_series: BarSeries) -> None:
        snapshot = build_indicator_snapshot(sample_bar_series, MacdSignalMode.EMA)
        assert snapshot.macd == macd(sample_bar_series.closes(), signal_mode=MacdSignalMode.EMA)

    def test_rounded_keeps_rsi_two_places(self, sample_bar_series: BarSeries) -> None:
        rounded = build_indicator_snapshot(sample_bar_series).rounded(6)
        assert rounded.rsi == round(rounded.rsi, 2)
        assert rounded.vwap == round(rounded.vwap, 6)
