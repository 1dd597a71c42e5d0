"""Price bands and levels: Bollinger Bands, Fibonacci retracements."""

from collections.abc import Sequence

import pandas as pd

from Market_Copilot.indicators.momentum import as_series
from Market_Copilot.models.indicators import BollingerBands, FibonacciLevels

FIBONACCI_RATIOS: tuple[float, float, float] = (0.618, 0.5, 0.382)


def bollinger(
    prices: Sequence[float] | pd.Series,
    period: int = 20,
    num_std: float = 2.0,
) -> BollingerBands:
    """Bollinger Bands over the trailing ``period`` prices.

    Formula:
        middle = SMA(period)
        upper  = middle + num_std * population_std(period)
        lower  = middle - num_std * population_std(period)

    Uses every price when fewer than ``period`` are available. Empty input
    yields all-zero bands.
    """
    close = as_series(prices)
    if close.empty:
        return BollingerBands(upper=0.0, middle=0.0, lower=0.0)

    window = close.iloc[-period:]
    middle = float(window.mean())
    std = float(window.std(ddof=0))
    return BollingerBands(
        upper=middle + num_std * std,
        middle=middle,
        lower=middle - num_std * std,
    )


def fibonacci(prices: Sequence[float] | pd.Series) -> FibonacciLevels:
    """Retracement levels measured down from the highest close.

    level = high - (high - low) * ratio, for ratio in 0.618, 0.5, 0.382.
    """
    close = as_series(prices)
    if close.empty:
        return FibonacciLevels(level_618=0.0, level_50=0.0, level_382=0.0)

    high = float(close.max())
    low = float(close.min())
    price_range = high - low
    level_618, level_50, level_382 = (high - price_range * r for r in FIBONACCI_RATIOS)
    return FibonacciLevels(level_618=level_618, level_50=level_50, level_382=level_382)
