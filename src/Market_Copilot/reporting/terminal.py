"""Rich-based terminal output for quotes, indicators, analyses, and health checks.

Uses ``rich.console.Console`` for all output. Color scheme:
green = BUY or healthy, red = SELL or down, yellow = HOLD/WAIT or caution.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from Market_Copilot.models.analysis import AnalysisResult, ComparativeResult
from Market_Copilot.models.enums import Instrument
from Market_Copilot.models.health import HealthStatus
from Market_Copilot.models.indicators import IndicatorSnapshot
from Market_Copilot.models.market_data import BarSeries, Quote
from Market_Copilot.reporting.formatters import (
    action_color,
    format_change,
    format_duration,
    format_price,
    format_volume,
    indicator_rows,
    level_rows,
)

logger = logging.getLogger(__name__)

# Shared console instance for terminal output
console = Console()

# --- Color scheme ---
COLOR_UP: str = "green"
COLOR_DOWN: str = "red"
COLOR_CAUTION: str = "yellow"
COLOR_HEADER: str = "bold cyan"
COLOR_MUTED: str = "dim"

DEFAULT_BAR_ROWS: int = 10


def _change_color(change_percent: float) -> str:
    return COLOR_UP if change_percent >= 0 else COLOR_DOWN


def _key_value_table() -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    return table


def render_quote(quote: Quote) -> None:
    """Render a single quote as a compact key-value block."""
    color = _change_color(quote.change_percent)
    table = _key_value_table()
    table.add_row("Price", format_price(quote.price, quote.symbol))
    table.add_row("Change", f"[{color}]{format_change(quote)}[/{color}]")
    table.add_row("24h High", format_price(quote.high_24h, quote.symbol))
    table.add_row("24h Low", format_price(quote.low_24h, quote.symbol))
    table.add_row("Volume", format_volume(quote.volume))
    table.add_row("Source", quote.source)
    table.add_row("Captured", quote.captured_at.strftime("%Y-%m-%dT%H:%M:%SZ"))

    console.print(Panel(table, title=f"[bold]{quote.symbol}[/bold]", style=COLOR_HEADER))


def render_prices(quotes: Mapping[Instrument, Quote]) -> None:
    """Render one row per instrument."""
    table = Table(title="Current Prices")
    table.add_column("Symbol", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Source", style=COLOR_MUTED)

    for symbol, quote in quotes.items():
        color = _change_color(quote.change_percent)
        table.add_row(
            str(symbol),
            format_price(quote.price, symbol),
            f"[{color}]{format_change(quote)}[/{color}]",
            quote.source,
        )

    console.print(table)


def render_bars(series: BarSeries, rows: int = DEFAULT_BAR_ROWS) -> None:
    """Render the most recent *rows* bars of *series*."""
    table = Table(title=f"{series.symbol} {series.interval} ({len(series)} bars)")
    table.add_column("Time")
    for column in ("Open", "High", "Low", "Close", "Volume"):
        table.add_column(column, justify="right")

    for bar in series.bars[-rows:]:
        table.add_row(
            bar.timestamp.strftime("%Y-%m-%d %H:%M"),
            format_price(bar.open, series.symbol),
            format_price(bar.high, series.symbol),
            format_price(bar.low, series.symbol),
            format_price(bar.close, series.symbol),
            format_volume(bar.volume),
        )

    console.print(table)


def render_indicators(snapshot: IndicatorSnapshot) -> None:
    """Render every indicator in a snapshot."""
    console.print(
        f"\n[bold]Technical Indicators: {snapshot.symbol} ({snapshot.interval})[/bold]",
        style=COLOR_HEADER,
    )
    table = _key_value_table()
    for label, value in indicator_rows(snapshot, snapshot.symbol):
        table.add_row(label, value)
    console.print(table)


def _render_result(result: AnalysisResult, symbol: Instrument, *, title: str) -> None:
    color = action_color(result)
    console.print(f"\n[bold]{title}[/bold] [{COLOR_MUTED}]({result.source_backend_id})[/]")
    console.print(f"  Recommendation: [{color}]{result.recommendation}[/{color}]")
    console.print(f"  Confidence: {result.confidence}/10")
    console.print(f"  Horizon: {result.recommended_horizon}")
    if result.fallback_used:
        console.print(f"  [{COLOR_CAUTION}]Served by a fallback backend[/{COLOR_CAUTION}]")

    console.print(f"\n  {result.narrative_text}")

    levels = _key_value_table()
    for label, value in level_rows(result, symbol):
        levels.add_row(label, value)
    console.print(levels)

    if result.technical_summary:
        console.print(f"\n  [bold]Technical view:[/bold] {result.technical_summary}")
    if result.catalysts:
        console.print("  [bold]Catalysts:[/bold]")
        for catalyst in result.catalysts:
            console.print(f"    - {catalyst}")


def render_analysis(result: AnalysisResult | ComparativeResult, symbol: Instrument) -> None:
    """Render a single or comparative analysis result."""
    console.print(Panel(f"[bold]{symbol}[/bold] Trade Analysis", style=COLOR_HEADER))

    if isinstance(result, AnalysisResult):
        _render_result(result, symbol, title="Analysis")
        return

    _render_result(result.primary, symbol, title="Primary Analysis")
    if result.secondary is not None:
        _render_result(result.secondary, symbol, title="Secondary Analysis")
        agree = "yes" if result.recommendations_agree else "no"
        console.print("\n[bold]Consensus[/bold]", style=COLOR_HEADER)
        console.print(f"  Agreement score: {result.agreement_score}/100")
        console.print(f"  Recommendations agree: {agree}")
        console.print(f"  Confidence delta: {result.confidence_delta}")
        console.print(f"  {result.summary_text}")
    elif result.fallback_used:
        console.print(
            f"\n  [{COLOR_CAUTION}]Comparison unavailable: "
            f"only one backend answered[/{COLOR_CAUTION}]"
        )

    console.print(
        f"\n  [{COLOR_MUTED}]Source: {result.source_backend_id} | "
        f"Duration: {format_duration(result.processing_time_ms)}[/{COLOR_MUTED}]"
    )


def render_health(status: HealthStatus) -> None:
    """Render provider and backend availability.

    Displays green OK marks for available services and red FAIL marks
    for unavailable ones.
    """
    console.print("\n[bold]System Health Check[/bold]\n")

    sections: list[tuple[str, dict[str, bool]]] = [
        ("Quote providers", status.quote_providers),
        ("Analysis backends", status.analysis_backends),
    ]
    for heading, checks in sections:
        console.print(f"  [bold]{heading}[/bold]")
        for name, available in checks.items():
            if available:
                console.print(f"    [green][OK][/green]   {name}")
            else:
                console.print(f"    [red][FAIL][/red] {name}")

    if not status.any_remote_backend:
        console.print(
            f"\n  [{COLOR_CAUTION}]No remote analysis backend reachable; "
            f"local analysis only.[/{COLOR_CAUTION}]"
        )

    last_check_str = status.last_check.strftime("%Y-%m-%dT%H:%M:%SZ")
    console.print(f"\n  Last check: {last_check_str}")
