"""CLI entry point for Market Copilot: quotes, indicators, and AI trade analysis.

Provides the ``market-copilot`` command with subcommands for current prices,
bar series, indicator snapshots, single or comparative analysis, and health
checks.

This is the ONLY module that prints. All other modules use ``logging``.
Async internals are bridged to typer's synchronous interface via
``asyncio.run()``. Caller-input errors (unknown symbol, blank query, bad
interval, rejected request fields) exit with code 2; other failures exit with code 1.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

import pydantic
import typer

from Market_Copilot.config import load_settings
from Market_Copilot.engine import MarketCopilot, build_market_copilot
from Market_Copilot.logging_config import configure_logging
from Market_Copilot.models import AnalysisRequest, ProviderPreference, resolve_instrument
from Market_Copilot.reporting import (
    render_analysis,
    render_bars,
    render_health,
    render_indicators,
    render_prices,
    render_quote,
)
from Market_Copilot.reporting.formatters import MACD_EXTRA_DECIMALS, price_decimals
from Market_Copilot.reporting.terminal import console
from Market_Copilot.utils.exceptions import InvalidRequestError, MarketCopilotError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(name="market-copilot", help="Market quotes, indicators, and AI trade analysis")

EXIT_FAILURE: int = 1
EXIT_INVALID_INPUT: int = 2

VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]
QuietOption = Annotated[bool, typer.Option("--quiet", "-q", help="Suppress info logging")]


def _run(action: Callable[[MarketCopilot], Awaitable[None]]) -> None:
    """Build a copilot from the environment, run *action*, and map errors to exit codes."""

    async def runner() -> None:
        settings = load_settings()
        async with build_market_copilot(settings) as copilot:
            await action(copilot)

    try:
        asyncio.run(runner())
    except InvalidRequestError as exc:
        console.print(f"[red]Invalid request:[/red] {exc}")
        raise typer.Exit(code=EXIT_INVALID_INPUT) from exc
    except pydantic.ValidationError as exc:
        reasons = "; ".join(error["msg"] for error in exc.errors())
        console.print(f"[red]Invalid request:[/red] {reasons}")
        raise typer.Exit(code=EXIT_INVALID_INPUT) from exc
    except MarketCopilotError as exc:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc


# ---------------------------------------------------------------------------
# Market data commands
# ---------------------------------------------------------------------------


@app.command()
def price(
    symbol: Annotated[str, typer.Argument(help="Instrument, e.g. EURUSD or XAUUSD")],
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show the current quote for one instrument."""
    configure_logging(verbose=verbose, quiet=quiet)

    async def action(copilot: MarketCopilot) -> None:
        render_quote(await copilot.get_current_price(symbol))

    _run(action)


@app.command()
def prices(
    symbols: Annotated[
        str, typer.Option(help="Comma-separated instruments (default: all)")
    ] = "",
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show current quotes for all (or the selected) instruments."""
    configure_logging(verbose=verbose, quiet=quiet)
    symbol_list = [s.strip() for s in symbols.split(",") if s.strip()] or None

    async def action(copilot: MarketCopilot) -> None:
        render_prices(await copilot.get_all_prices(symbol_list))

    _run(action)


@app.command()
def bars(
    symbol: Annotated[str, typer.Argument(help="Instrument, e.g. EURUSD")],
    interval: Annotated[str, typer.Option(help="Bar interval, e.g. 1H or 15m")] = "",
    length: Annotated[int, typer.Option(help="Number of bars (default: configured lookback)")] = 0,
    rows: Annotated[int, typer.Option(help="Most recent bars to display")] = 10,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show recent OHLCV bars for one instrument."""
    configure_logging(verbose=verbose, quiet=quiet)

    async def action(copilot: MarketCopilot) -> None:
        series = await copilot.get_bar_series(symbol, interval or None, length or None)
        render_bars(series, rows=rows)

    _run(action)


@app.command()
def indicators(
    symbol: Annotated[str, typer.Argument(help="Instrument, e.g. EURUSD")],
    interval: Annotated[str, typer.Option(help="Bar interval, e.g. 1H or 15m")] = "",
    as_json: Annotated[bool, typer.Option("--json", help="Print rounded JSON")] = False,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show RSI, MACD, VWAP, Bollinger Bands, and Fibonacci levels."""
    configure_logging(verbose=verbose, quiet=quiet)

    async def action(copilot: MarketCopilot) -> None:
        snapshot = await copilot.get_indicators(symbol, interval or None)
        if as_json:
            decimals = price_decimals(snapshot.symbol) + MACD_EXTRA_DECIMALS
            console.print_json(snapshot.rounded(decimals).model_dump_json())
        else:
            render_indicators(snapshot)

    _run(action)


# ---------------------------------------------------------------------------
# analyze command
# ---------------------------------------------------------------------------


@app.command()
def analyze(
    symbol: Annotated[str, typer.Argument(help="Instrument, e.g. XAUUSD")],
    query: Annotated[str, typer.Argument(help="Question for the analyst")],
    provider: Annotated[
        ProviderPreference, typer.Option(help="Backend preference")
    ] = ProviderPreference.AUTO,
    compare: Annotated[
        bool, typer.Option("--compare", help="Ask both remote backends and score agreement")
    ] = False,
    timeout: Annotated[
        float, typer.Option(help="Overall deadline in seconds (0 for none)")
    ] = 0.0,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Run a trade analysis with automatic backend failover."""
    configure_logging(verbose=verbose, quiet=quiet)

    async def action(copilot: MarketCopilot) -> None:
        request = AnalysisRequest(
            query=query,
            symbol=symbol,
            provider_preference=provider,
            compare=compare,
        )
        result = await copilot.analyze(request, timeout=timeout or None)
        render_analysis(result, resolve_instrument(symbol))

    _run(action)


# ---------------------------------------------------------------------------
# health command
# ---------------------------------------------------------------------------


@app.command()
def health(
    verbose: VerboseOption = False,
) -> None:
    """Check the health of every quote provider and analysis backend."""
    configure_logging(verbose=verbose)

    async def action(copilot: MarketCopilot) -> None:
        console.print("\n[bold]Running health checks...[/bold]")
        render_health(await copilot.check_health())

    _run(action)
