"""Shared formatting utilities for terminal output.

The engine computes in full precision; rounding for display happens here.
Prices use the instrument's display precision (four decimals for EURUSD and
GBPUSD, two for JPY crosses, metals, and indices).
"""

from __future__ import annotations

import logging

from Market_Copilot.models.analysis import AnalysisResult
from Market_Copilot.models.enums import Instrument, TradeAction
from Market_Copilot.models.indicators import IndicatorSnapshot
from Market_Copilot.models.instruments import get_profile
from Market_Copilot.models.market_data import Quote

logger = logging.getLogger(__name__)

# --- Indicator interpretation thresholds ---
RSI_OVERBOUGHT: float = 70.0
RSI_OVERSOLD: float = 30.0

# --- Action colors (rich markup) ---
ACTION_COLORS: dict[TradeAction, str] = {
    TradeAction.BUY: "green",
    TradeAction.SELL: "red",
    TradeAction.HOLD: "yellow",
    TradeAction.WAIT: "yellow",
}
DEFAULT_ACTION_COLOR: str = "white"

# MACD values are small relative to price, so they get extra precision.
MACD_EXTRA_DECIMALS: int = 2


def price_decimals(symbol: Instrument) -> int:
    """Display precision for *symbol*."""
    return get_profile(symbol).price_decimals


def format_price(value: float, symbol: Instrument) -> str:
    """Format a price with thousands separators at the symbol's precision."""
    return f"{value:,.{price_decimals(symbol)}f}"


def format_change(quote: Quote) -> str:
    """Format absolute and percent change, e.g. ``+0.0012 (+0.11%)``."""
    decimals = price_decimals(quote.symbol)
    return f"{quote.change:+,.{decimals}f} ({quote.change_percent:+.2f}%)"


def format_volume(volume: int) -> str:
    return f"{volume:,}"


def interpret_rsi(rsi: float) -> str:
    """Plain-English RSI label for display."""
    if rsi > RSI_OVERBOUGHT:
        return "Overbought"
    if rsi < RSI_OVERSOLD:
        return "Oversold"
    return "Neutral"


def action_color(result: AnalysisResult) -> str:
    """Rich color for the normalized action of *result*."""
    if result.action is None:
        return DEFAULT_ACTION_COLOR
    return ACTION_COLORS[result.action]


def format_duration(milliseconds: int) -> str:
    """Format a duration as seconds with one decimal, e.g. ``1.2s``."""
    return f"{milliseconds / 1000:.1f}s"


def indicator_rows(snapshot: IndicatorSnapshot, symbol: Instrument) -> list[tuple[str, str]]:
    """Build ``(label, value)`` rows for an indicator snapshot.

    Every value is rounded here; the snapshot itself stays at full precision.
    """
    macd_decimals = price_decimals(symbol) + MACD_EXTRA_DECIMALS
    return [
        ("RSI (14)", f"{snapshot.rsi:.2f} ({interpret_rsi(snapshot.rsi)})"),
        ("MACD", f"{snapshot.macd.macd:.{macd_decimals}f}"),
        ("MACD Signal", f"{snapshot.macd.signal:.{macd_decimals}f}"),
        ("MACD Histogram", f"{snapshot.macd.histogram:.{macd_decimals}f}"),
        ("VWAP", format_price(snapshot.vwap, symbol)),
        ("Bollinger Upper", format_price(snapshot.bollinger.upper, symbol)),
        ("Bollinger Middle", format_price(snapshot.bollinger.middle, symbol)),
        ("Bollinger Lower", format_price(snapshot.bollinger.lower, symbol)),
        ("Fibonacci 61.8%", format_price(snapshot.fibonacci.level_618, symbol)),
        ("Fibonacci 50%", format_price(snapshot.fibonacci.level_50, symbol)),
        ("Fibonacci 38.2%", format_price(snapshot.fibonacci.level_382, symbol)),
    ]


def level_rows(result: AnalysisResult, symbol: Instrument) -> list[tuple[str, str]]:
    """Build ``(label, value)`` rows for the trade levels of *result*."""
    return [
        ("Entry", format_price(result.entry_level, symbol)),
        ("Support", format_price(result.support_level, symbol)),
        ("Resistance", format_price(result.resistance_level, symbol)),
        ("Stop Loss", format_price(result.stop_loss, symbol)),
        ("Take Profit", format_price(result.take_profit, symbol)),
        ("Risk/Reward", result.risk_reward_ratio),
    ]
