"""Assemble an IndicatorSnapshot from one bar series."""

from Market_Copilot.indicators.bands import bollinger, fibonacci
from Market_Copilot.indicators.momentum import macd, rsi
from Market_Copilot.indicators.volume import vwap
from Market_Copilot.models.enums import MacdSignalMode
from Market_Copilot.models.indicators import IndicatorSnapshot
from Market_Copilot.models.market_data import BarSeries


def build_indicator_snapshot(
    series: BarSeries,
    signal_mode: MacdSignalMode = MacdSignalMode.RATIO,
) -> IndicatorSnapshot:
    """Compute every indicator from *series*; a pure function of its input."""
    closes = series.closes()
    return IndicatorSnapshot(
        symbol=series.symbol,
        interval=series.interval,
        rsi=rsi(closes),
        macd=macd(closes, signal_mode=signal_mode),
        vwap=vwap(series),
        bollinger=bollinger(closes),
        fibonacci=fibonacci(closes),
    )
