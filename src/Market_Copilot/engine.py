"""MarketCopilot facade: the single inbound surface of the package.

Wires the quote chain, the bar store, the indicator engine, and the analysis
coordinator together. ``build_market_copilot`` constructs every component
explicitly from ``Settings``; nothing is held in module-level state.

Usage::

    settings = load_settings()
    async with build_market_copilot(settings) as copilot:
        quote = await copilot.get_current_price("XAUUSD")
        result = await copilot.analyze(
            AnalysisRequest(query="Is gold a buy here?", symbol="XAUUSD"),
            timeout=30,
        )
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Iterable, Sequence
from types import TracebackType
from typing import Self

from Market_Copilot.agents import (
    AnalysisCoordinator,
    LocalHeuristicBackend,
    build_claude_backend,
    build_deepseek_backend,
)
from Market_Copilot.config import Settings
from Market_Copilot.indicators import build_indicator_snapshot
from Market_Copilot.models import (
    AnalysisContext,
    AnalysisRequest,
    AnalysisResult,
    BarInterval,
    BarSeries,
    ComparativeResult,
    HealthStatus,
    IndicatorSnapshot,
    Instrument,
    MacdSignalMode,
    Quote,
    resolve_instrument,
)
from Market_Copilot.services import (
    AlphaVantageProvider,
    BarSeriesStore,
    BarSource,
    FinnhubProvider,
    HealthService,
    MetalsLiveProvider,
    QuoteProvider,
    QuoteService,
    SyntheticBarSource,
    SyntheticQuoteGenerator,
    TTLCache,
    YahooBarSource,
    YahooFinanceProvider,
)
from Market_Copilot.utils.exceptions import (
    AnalysisTimeoutError,
    InvalidRequestError,
    MarketCopilotError,
)

logger = logging.getLogger(__name__)


class MarketCopilot:
    """Quotes, bars, indicators, and trade analysis for the supported instruments.

    Parameters
    ----------
    quotes:
        Quote provider chain.
    bars:
        Bar series store.
    coordinator:
        Analysis backend chain.
    health:
        Health checker; built from ``quotes`` and ``coordinator`` when omitted.
    default_interval / default_lookback:
        Bar interval and length used for the indicators handed to analysis.
    macd_signal_mode:
        MACD signal line computation used by ``get_indicators``.
    """

    def __init__(
        self,
        quotes: QuoteService,
        bars: BarSeriesStore,
        coordinator: AnalysisCoordinator,
        *,
        health: HealthService | None = None,
        default_interval: BarInterval = BarInterval.H1,
        default_lookback: int = 50,
        macd_signal_mode: MacdSignalMode = MacdSignalMode.RATIO,
    ) -> None:
        self._quotes = quotes
        self._bars = bars
        self._coordinator = coordinator
        self._health = (
            health if health is not None else HealthService(quotes.providers, coordinator)
        )
        self._default_interval = default_interval
        self._default_lookback = default_lookback
        self._macd_signal_mode = macd_signal_mode

    @property
    def coordinator(self) -> AnalysisCoordinator:
        return self._coordinator

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def get_current_price(self, symbol: str | Instrument) -> Quote:
        """Freshest available quote; never fails for a supported symbol."""
        return await self._quotes.get_current_price(symbol)

    async def get_all_prices(
        self,
        symbols: Iterable[str | Instrument] | None = None,
    ) -> dict[Instrument, Quote]:
        return await self._quotes.get_all_prices(symbols)

    async def get_bar_series(
        self,
        symbol: str | Instrument,
        interval: str | BarInterval | None = None,
        length: int | None = None,
    ) -> BarSeries:
        return await self._bars.get_bar_series(
            symbol,
            interval if interval is not None else self._default_interval,
            length if length is not None else self._default_lookback,
        )

    async def get_indicators(
        self,
        symbol: str | Instrument,
        interval: str | BarInterval | None = None,
        length: int | None = None,
    ) -> IndicatorSnapshot:
        """Compute every indicator over the most recent bars for *symbol*."""
        series = await self.get_bar_series(symbol, interval, length)
        return build_indicator_snapshot(series, signal_mode=self._macd_signal_mode)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        timeout: float | None = None,
    ) -> AnalysisResult | ComparativeResult:
        """Run a single or comparative analysis for *request*.

        The symbol and query are validated before any upstream call.

        Args:
            request: Query, symbol, and provider preference.
            timeout: Overall deadline in seconds. ``None`` relies on the
                per-attempt backend timeouts only.

        Raises:
            UnknownSymbolError: If the symbol is not supported.
            InvalidRequestError: If *timeout* is not positive.
            AnalysisTimeoutError: If *timeout* expires; partial work is discarded.
            AllBackendsFailedError: If no backend, local included, succeeded.
        """
        instrument = resolve_instrument(request.symbol)
        query = request.query.strip()
        if timeout is not None and timeout <= 0:
            msg = f"Analysis timeout must be positive, got {timeout}"
            raise InvalidRequestError(msg)

        try:
            async with asyncio.timeout(timeout):
                context = await self._build_context(instrument, query)
                result = await self._coordinator.analyze(request, context)
        except TimeoutError as exc:
            msg = f"Analysis for {instrument} exceeded {timeout}s"
            raise AnalysisTimeoutError(msg) from exc

        logger.info(
            "Analysis for %s complete: source=%s",
            instrument,
            result.source_backend_id,
        )
        return result

    async def analyze_batch(
        self,
        requests: Sequence[AnalysisRequest],
        *,
        timeout: float | None = None,
    ) -> list[AnalysisResult | ComparativeResult | MarketCopilotError]:
        """Run several analyses concurrently; each item settles on its own.

        The returned list follows request order. An item whose symbol is
        unknown or whose analysis failed holds the raised
        ``MarketCopilotError`` in place of a result, and the other items are
        unaffected. *timeout* bounds each item separately.
        """
        outcomes = await asyncio.gather(
            *(self.analyze(request, timeout=timeout) for request in requests),
            return_exceptions=True,
        )

        settled: list[AnalysisResult | ComparativeResult | MarketCopilotError] = []
        for request, outcome in zip(requests, outcomes, strict=True):
            if isinstance(outcome, MarketCopilotError):
                logger.warning("Batch analysis for %s failed: %s", request.symbol, outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            settled.append(outcome)

        failures = sum(isinstance(item, MarketCopilotError) for item in settled)
        logger.info(
            "Batch analysis complete: %d requested, %d failed",
            len(settled),
            failures,
        )
        return settled

    async def _build_context(self, instrument: Instrument, query: str) -> AnalysisContext:
        quote = await self._quotes.get_current_price(instrument)

        indicators: IndicatorSnapshot | None
        try:
            indicators = await self.get_indicators(instrument)
        except (MarketCopilotError, ValueError) as exc:
            logger.warning("Indicators unavailable for %s: %s", instrument, exc)
            indicators = None

        return AnalysisContext(
            query=query,
            instrument=instrument,
            quote=quote,
            indicators=indicators,
        )

    # ------------------------------------------------------------------
    # Health and lifecycle
    # ------------------------------------------------------------------

    async def check_health(self) -> HealthStatus:
        return await self._health.check_all()

    async def aclose(self) -> None:
        """Close provider HTTP clients and backend resources."""
        for provider in self._quotes.providers:
            await provider.aclose()
        await self._coordinator.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def build_market_copilot(settings: Settings) -> MarketCopilot:
    """Construct a fully wired ``MarketCopilot`` from *settings*."""
    cache = TTLCache()
    rng = random.Random(settings.synthetic_seed)  # noqa: S311
    synthetic = SyntheticQuoteGenerator(rng=rng)

    providers: list[QuoteProvider] = [
        FinnhubProvider(
            settings.finnhub_api_key,
            timeout_seconds=settings.provider_timeout_seconds,
        ),
        YahooFinanceProvider(),
        AlphaVantageProvider(
            settings.alpha_vantage_api_key,
            timeout_seconds=settings.provider_timeout_seconds,
        ),
        MetalsLiveProvider(timeout_seconds=settings.provider_timeout_seconds),
    ]
    quotes = QuoteService(
        cache,
        providers,
        synthetic,
        attempt_timeout=settings.provider_timeout_seconds,
    )

    bar_sources: list[BarSource] = []
    if settings.enable_yahoo_bars:
        bar_sources.append(YahooBarSource())
    bars = BarSeriesStore(cache, SyntheticBarSource(synthetic), bar_sources)

    coordinator = AnalysisCoordinator(
        [
            build_claude_backend(settings.anthropic_api_key, settings.claude_model),
            build_deepseek_backend(
                settings.deepseek_api_key,
                settings.deepseek_model,
                settings.deepseek_base_url,
            ),
            LocalHeuristicBackend(),
        ],
        attempt_timeout=settings.analysis_timeout_seconds,
    )

    logger.info(
        "MarketCopilot built: providers=%s, yahoo_bars=%s",
        [p.name for p in providers],
        settings.enable_yahoo_bars,
    )
    return MarketCopilot(
        quotes,
        bars,
        coordinator,
        health=HealthService(providers, coordinator),
        default_interval=settings.default_interval,
        default_lookback=settings.default_lookback,
    )
