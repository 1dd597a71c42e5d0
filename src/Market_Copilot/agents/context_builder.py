"""Convert an AnalysisContext into flat key-value text for LLM prompts.

Values are rounded for display here (and only here on the analysis path):
two decimals for JPY crosses, metals, and indices, four for other pairs.
The trading session and a volatility label are derived from the snapshot
so remote models do not have to infer them.
"""

from __future__ import annotations

import datetime

from Market_Copilot.models import AnalysisContext, get_profile

# ---------------------------------------------------------------------------
# Interpretation thresholds
# ---------------------------------------------------------------------------

_RSI_OVERSOLD: float = 30.0
_RSI_OVERBOUGHT: float = 70.0

_VOLATILITY_HIGH: float = 1.0
_VOLATILITY_MEDIUM_HIGH: float = 0.5
_VOLATILITY_MEDIUM: float = 0.2

# Session boundaries in UTC hours
_TOKYO_OPEN: int = 6
_LONDON_OPEN: int = 8
_NEW_YORK_OPEN: int = 16
_SYDNEY_OPEN: int = 22


def market_session(now: datetime.datetime) -> str:
    """Return the dominant trading session for the UTC hour of *now*."""
    hour = now.astimezone(datetime.UTC).hour
    if hour >= _SYDNEY_OPEN or hour < _TOKYO_OPEN:
        return "Sydney"
    if hour < _LONDON_OPEN:
        return "Tokyo"
    if hour < _NEW_YORK_OPEN:
        return "London"
    return "New York"


def volatility_label(change_percent: float) -> str:
    """Return a plain-English label for the size of the latest move."""
    move = abs(change_percent)
    if move > _VOLATILITY_HIGH:
        return "High"
    if move > _VOLATILITY_MEDIUM_HIGH:
        return "Medium-High"
    if move > _VOLATILITY_MEDIUM:
        return "Medium"
    return "Low"


def _interpret_rsi(rsi: float) -> str:
    """Return a plain-English label for RSI."""
    if rsi < _RSI_OVERSOLD:
        return "oversold"
    if rsi > _RSI_OVERBOUGHT:
        return "overbought"
    return "neutral"


def build_context_text(context: AnalysisContext) -> str:
    """Render *context* as flat labeled text. No JSON, no nesting."""
    decimals = get_profile(context.instrument).price_decimals
    quote = context.quote

    def px(value: float) -> str:
        return f"{value:.{decimals}f}"

    lines = [
        f"Instrument: {context.instrument}",
        f"Current Price: {px(quote.price)}",
        f"Change: {quote.change:+.{decimals}f} ({quote.change_percent:+.2f}%)",
        f"24h High: {px(quote.high_24h)}",
        f"24h Low: {px(quote.low_24h)}",
        f"Volume: {quote.volume:,}",
        f"Quote Source: {quote.source}",
        f"Market Session: {market_session(context.created_at)}",
        f"Volatility: {volatility_label(quote.change_percent)}",
    ]

    indicators = context.indicators
    if indicators is None:
        lines.append("Technical Indicators: unavailable")
    else:
        lines.extend(
            [
                f"Indicator Interval: {indicators.interval}",
                f"RSI(14): {indicators.rsi:.2f} ({_interpret_rsi(indicators.rsi)})",
                f"MACD: {indicators.macd.macd:.{decimals + 2}f}",
                f"MACD Signal: {indicators.macd.signal:.{decimals + 2}f}",
                f"MACD Histogram: {indicators.macd.histogram:.{decimals + 2}f}",
                f"VWAP: {px(indicators.vwap)}",
                f"Bollinger Upper: {px(indicators.bollinger.upper)}",
                f"Bollinger Middle: {px(indicators.bollinger.middle)}",
                f"Bollinger Lower: {px(indicators.bollinger.lower)}",
                f"Fibonacci 61.8%: {px(indicators.fibonacci.level_618)}",
                f"Fibonacci 50%: {px(indicators.fibonacci.level_50)}",
                f"Fibonacci 38.2%: {px(indicators.fibonacci.level_382)}",
            ]
        )

    return "\n".join(lines)
