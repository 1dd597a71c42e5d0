"""Shared test fixtures for the Market Copilot test suite.

Provides realistic sample instances of the core models so tests don't
need to inline large construction blocks.
"""

import datetime
from collections.abc import Callable

import pytest

from Market_Copilot.models import (
    AnalysisContext,
    AnalysisResult,
    BackendId,
    Bar,
    BarSeries,
    BollingerBands,
    FibonacciLevels,
    IndicatorSnapshot,
    Instrument,
    MacdValues,
    Quote,
)

FIXED_NOW = datetime.datetime(2025, 1, 15, 14, 30, 0, tzinfo=datetime.UTC)


class FakeClock:
    """Manually advanced UTC clock for TTL tests."""

    def __init__(self, start: datetime.datetime = FIXED_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += datetime.timedelta(seconds=seconds)


def make_quote(
    symbol: Instrument = Instrument.EURUSD,
    price: float = 1.0850,
    *,
    change_percent: float = 0.12,
    source: str = "finnhub",
) -> Quote:
    """Build a plausible quote around *price*."""
    return Quote(
        symbol=symbol,
        price=price,
        change=price * change_percent / 100,
        change_percent=change_percent,
        volume=1_250_000,
        high_24h=price * 1.004,
        low_24h=price * 0.996,
        captured_at=FIXED_NOW,
        source=source,
    )


def make_bars(
    closes: list[float],
    *,
    start: datetime.datetime = FIXED_NOW,
    step_seconds: int = 3600,
    volume: int = 1000,
) -> list[Bar]:
    """Bars whose open equals the previous close and whose range brackets both."""
    bars: list[Bar] = []
    previous = closes[0]
    for i, close in enumerate(closes):
        high = max(previous, close) * 1.001
        low = min(previous, close) * 0.999
        bars.append(
            Bar(
                timestamp=start + datetime.timedelta(seconds=step_seconds * i),
                open=previous,
                high=high,
                low=low,
                close=close,
                volume=volume,
            )
        )
        previous = close
    return bars


def make_result(
    backend: BackendId = BackendId.CLAUDE,
    *,
    recommendation: str = "BUY - Trend continuation",
    confidence: int = 7,
    entry: float = 1.0850,
) -> AnalysisResult:
    """A complete analysis result with levels around *entry*."""
    return AnalysisResult(
        narrative_text="EURUSD holds above VWAP with improving momentum.",
        recommendation=recommendation,
        confidence=confidence,
        support_level=entry * 0.995,
        resistance_level=entry * 1.005,
        entry_level=entry,
        stop_loss=entry * 0.992,
        take_profit=entry * 1.02,
        risk_reward_ratio="1:2.5",
        technical_summary="RSI 58, MACD histogram positive.",
        catalysts=["ECB rate decision"],
        recommended_horizon="Short term (1-2 days)",
        source_backend_id=backend,
    )


@pytest.fixture()
def sample_quote() -> Quote:
    """A valid EURUSD quote from Finnhub."""
    return make_quote()


@pytest.fixture()
def sample_bar_series() -> BarSeries:
    """Thirty hourly EURUSD bars trending gently upward."""
    closes = [1.0800 + 0.0002 * i + (0.0003 if i % 3 == 0 else 0.0) for i in range(30)]
    return BarSeries(symbol=Instrument.EURUSD, interval="1H", bars=make_bars(closes))


@pytest.fixture()
def sample_indicators() -> IndicatorSnapshot:
    """A bullish-leaning EURUSD indicator snapshot."""
    return IndicatorSnapshot(
        symbol=Instrument.EURUSD,
        interval="1H",
        rsi=58.4,
        macd=MacdValues(macd=0.0012, signal=0.00108, histogram=0.00012),
        vwap=1.0832,
        bollinger=BollingerBands(upper=1.0890, middle=1.0840, lower=1.0790),
        fibonacci=FibonacciLevels(level_618=1.0822, level_50=1.0835, level_382=1.0848),
    )


@pytest.fixture()
def sample_context(sample_quote: Quote, sample_indicators: IndicatorSnapshot) -> AnalysisContext:
    """An analysis context for EURUSD with indicators."""
    return AnalysisContext(
        query="Should I buy EURUSD ahead of the ECB?",
        instrument=Instrument.EURUSD,
        quote=sample_quote,
        indicators=sample_indicators,
        created_at=FIXED_NOW,
    )


@pytest.fixture()
def sample_result() -> AnalysisResult:
    """A Claude BUY result."""
    return make_result()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def quote_factory() -> Callable[..., Quote]:
    """The ``make_quote`` builder, for tests that need several quotes."""
    return make_quote


@pytest.fixture()
def bars_factory() -> Callable[..., list[Bar]]:
    """The ``make_bars`` builder."""
    return make_bars


@pytest.fixture()
def result_factory() -> Callable[..., AnalysisResult]:
    """The ``make_result`` builder."""
    return make_result
