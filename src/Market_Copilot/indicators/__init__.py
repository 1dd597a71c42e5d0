"""Technical indicators for market analysis.

Pure math module: float sequences or pandas Series in, floats or small
frozen models out. No API calls, no I/O.
"""

from Market_Copilot.indicators.bands import bollinger, fibonacci
from Market_Copilot.indicators.momentum import ema, macd, rsi
from Market_Copilot.indicators.snapshot import build_indicator_snapshot
from Market_Copilot.indicators.volume import vwap

__all__ = [
    "bollinger",
    "build_indicator_snapshot",
    "ema",
    "fibonacci",
    "macd",
    "rsi",
    "vwap",
]
