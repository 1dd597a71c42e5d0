"""Momentum indicators: RSI, EMA, MACD.

Each function takes closing prices (any float sequence or pandas Series)
and returns the latest indicator value as a float. Results are in full
precision; rounding is a presentation concern.
"""

from collections.abc import Sequence

import pandas as pd

from Market_Copilot.models.enums import MacdSignalMode
from Market_Copilot.models.indicators import MacdValues

RSI_NEUTRAL: float = 50.0
MACD_FAST: int = 12
MACD_SLOW: int = 26
MACD_SIGNAL: int = 9
MACD_SIGNAL_RATIO: float = 0.9


def as_series(prices: Sequence[float] | pd.Series) -> pd.Series:
    """Coerce *prices* to a float Series with a fresh integer index."""
    if isinstance(prices, pd.Series):
        return prices.astype(float).reset_index(drop=True)
    return pd.Series(list(prices), dtype=float)


def rsi(
    prices: Sequence[float] | pd.Series,
    period: int = 14,
) -> float:
    """Relative Strength Index over the trailing ``period`` price changes.

    Formula:
        avg_gain = sum(positive deltas) / period
        avg_loss = sum(|negative deltas|) / period
        RSI      = 100 - 100 / (1 + avg_gain / avg_loss)

    Simple (not Wilder-smoothed) averages. When avg_loss = 0: RSI = 100.
    With fewer than ``period + 1`` prices the neutral value 50 is returned.
    """
    close = as_series(prices)
    if len(close) < period + 1:
        return RSI_NEUTRAL

    delta = close.diff().iloc[-period:]
    avg_gain = float(delta.clip(lower=0.0).sum()) / period
    avg_loss = float((-delta).clip(lower=0.0).sum()) / period

    # Division-by-zero guard: no losses means maximum strength
    if avg_loss == 0.0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def ema_series(
    prices: Sequence[float] | pd.Series,
    period: int,
) -> pd.Series:
    """Exponential moving average seeded with the first price.

    multiplier = 2 / (period + 1), i.e. ``ewm(span=period, adjust=False)``.
    """
    close = as_series(prices)
    result: pd.Series = close.ewm(span=period, adjust=False).mean()
    return result


def ema(
    prices: Sequence[float] | pd.Series,
    period: int,
) -> float:
    """Latest EMA value; 0.0 for an empty input."""
    values = ema_series(prices, period)
    if values.empty:
        return 0.0
    return float(values.iloc[-1])


def macd(
    prices: Sequence[float] | pd.Series,
    signal_mode: MacdSignalMode = MacdSignalMode.RATIO,
) -> MacdValues:
    """MACD = EMA(12) - EMA(26), with a signal line and histogram.

    Signal modes:
        RATIO: signal = 0.9 * macd (legacy approximation).
        EMA:   signal = EMA(9) of the MACD line.

    The histogram is always exactly ``macd - signal``.
    """
    close = as_series(prices)
    if close.empty:
        return MacdValues(macd=0.0, signal=0.0, histogram=0.0)

    macd_line = ema_series(close, MACD_FAST) - ema_series(close, MACD_SLOW)
    macd_value = float(macd_line.iloc[-1])

    match signal_mode:
        case MacdSignalMode.EMA:
            signal_value = float(macd_line.ewm(span=MACD_SIGNAL, adjust=False).mean().iloc[-1])
        case _:
            signal_value = macd_value * MACD_SIGNAL_RATIO

    return MacdValues(
        macd=macd_value,
        signal=signal_value,
        histogram=macd_value - signal_value,
    )
