"""Reporting module: display formatting and rich terminal output.

Re-exports all public functions so consumers can import directly:
    from Market_Copilot.reporting import render_analysis, format_price
"""

from Market_Copilot.reporting.formatters import (
    format_change,
    format_price,
    format_volume,
    indicator_rows,
    interpret_rsi,
    level_rows,
)
from Market_Copilot.reporting.terminal import (
    render_analysis,
    render_bars,
    render_health,
    render_indicators,
    render_prices,
    render_quote,
)

__all__ = [
    # Formatters
    "format_change",
    "format_price",
    "format_volume",
    "indicator_rows",
    "interpret_rsi",
    "level_rows",
    # Terminal
    "render_analysis",
    "render_bars",
    "render_health",
    "render_indicators",
    "render_prices",
    "render_quote",
]
