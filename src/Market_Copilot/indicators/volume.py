"""Volume-weighted average price.

Takes bars (a BarSeries or any sequence of Bar) and returns a float.
"""

from collections.abc import Sequence

import numpy as np

from Market_Copilot.models.market_data import Bar, BarSeries


def vwap(bars: BarSeries | Sequence[Bar]) -> float:
    """Volume-weighted mean of the typical price over all bars.

    Formula:
        typical = (high + low + close) / 3
        VWAP    = sum(typical * volume) / sum(volume)

    Returns 0.0 for no bars or zero total volume.
    """
    items = bars.bars if isinstance(bars, BarSeries) else list(bars)
    if not items:
        return 0.0

    high = np.array([b.high for b in items], dtype=float)
    low = np.array([b.low for b in items], dtype=float)
    close = np.array([b.close for b in items], dtype=float)
    volume = np.array([b.volume for b in items], dtype=float)

    total_volume = float(np.sum(volume))
    if total_volume == 0.0:
        return 0.0

    typical = (high + low + close) / 3.0
    return float(np.dot(typical, volume)) / total_volume
