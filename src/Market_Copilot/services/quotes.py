"""Quote provider chain with caching and a synthetic last resort.

``get_current_price`` serves the cache when fresh, otherwise walks the
providers in priority order and caches the first valid quote with the TTL of
the provider that answered. When every provider fails, a synthetic quote is
returned instead, so this service never propagates a provider error.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
from collections.abc import Iterable, Sequence
from typing import Final

from Market_Copilot.models.enums import Instrument
from Market_Copilot.models.instruments import resolve_instrument
from Market_Copilot.models.market_data import Quote
from Market_Copilot.services._helpers import (
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    EXTERNAL_CALL_TIMEOUT_SECONDS,
)
from Market_Copilot.services.cache import TTL_SYNTHETIC_QUOTE, TTLCache, price_key
from Market_Copilot.services.quote_providers import QuoteProvider
from Market_Copilot.services.synthetic import SyntheticQuoteGenerator
from Market_Copilot.utils.chain import ChainCandidate, run_chain
from Market_Copilot.utils.exceptions import ChainExhaustedError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BULK_COVERAGE_THRESHOLD: Final[float] = 0.7


def is_valid_quote(quote: Quote) -> bool:
    """A quote is usable iff its price is a finite number greater than zero."""
    return math.isfinite(quote.price) and quote.price > 0


class QuoteService:
    """Serve current quotes through a prioritized provider chain.

    Usage::

        service = QuoteService(
            cache=TTLCache(),
            providers=[FinnhubProvider(key), YahooFinanceProvider()],
            synthetic=SyntheticQuoteGenerator(),
        )
        quote = await service.get_current_price("EURUSD")
        quotes = await service.get_all_prices()
    """

    def __init__(
        self,
        cache: TTLCache,
        providers: Sequence[QuoteProvider],
        synthetic: SyntheticQuoteGenerator,
        *,
        attempt_timeout: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        bulk_timeout: float = EXTERNAL_CALL_TIMEOUT_SECONDS,
        bulk_coverage_threshold: float = BULK_COVERAGE_THRESHOLD,
    ) -> None:
        self._cache = cache
        self._providers = list(providers)
        self._synthetic = synthetic
        self._attempt_timeout = attempt_timeout
        self._bulk_timeout = bulk_timeout
        self._bulk_coverage_threshold = bulk_coverage_threshold

        logger.info(
            "QuoteService initialized: providers=%s, attempt_timeout=%.1fs",
            [p.name for p in self._providers],
            attempt_timeout,
        )

    @property
    def providers(self) -> list[QuoteProvider]:
        """Providers in priority order."""
        return list(self._providers)

    @property
    def synthetic(self) -> SyntheticQuoteGenerator:
        """The fallback generator (shared with the synthetic bar source)."""
        return self._synthetic

    async def get_current_price(self, symbol: str | Instrument) -> Quote:
        """Return the freshest valid quote for *symbol*.

        Raises:
            UnknownSymbolError: If *symbol* is not supported. Raised before
                any provider is contacted.
        """
        instrument = resolve_instrument(symbol)
        key = price_key(instrument)

        async with self._cache.key_lock(key):
            cached = await self._cache.get(key)
            if cached is not None:
                return Quote.model_validate_json(cached)

            quote, ttl = await self._fetch_through_chain(instrument)
            await self._cache.set(key, quote.model_dump_json(), ttl)
            return quote

    async def get_all_prices(
        self,
        symbols: Iterable[str | Instrument] | None = None,
    ) -> dict[Instrument, Quote]:
        """Return a quote for every requested symbol (all instruments by default).

        One bulk call is made to the first bulk-capable provider. If it covers
        fewer than the coverage threshold of the requested symbols, the
        per-symbol chain runs concurrently for every symbol and the results
        are merged, with bulk quotes taking precedence. Otherwise the few
        uncovered symbols are filled from the cache or the synthetic
        generator without further provider calls.
        """
        requested = (
            list(dict.fromkeys(resolve_instrument(s) for s in symbols))
            if symbols is not None
            else list(Instrument)
        )
        if not requested:
            return {}

        results = await self._fetch_bulk(requested)
        coverage = len(results) / len(requested)

        if coverage < self._bulk_coverage_threshold:
            logger.info(
                "Bulk coverage %.0f%% below %.0f%%, fetching %d symbols individually",
                coverage * 100,
                self._bulk_coverage_threshold * 100,
                len(requested),
            )
            individual = await self._fetch_individually(requested)
            for symbol, quote in individual.items():
                results.setdefault(symbol, quote)
        else:
            for symbol in requested:
                if symbol not in results:
                    results[symbol] = await self._cached_or_synthetic(symbol)

        return {symbol: results[symbol] for symbol in requested}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_through_chain(self, instrument: Instrument) -> tuple[Quote, float]:
        """Run the provider chain, falling back to a synthetic quote."""
        candidates = [
            ChainCandidate(name=provider.name, call=functools.partial(provider.fetch, instrument))
            for provider in self._providers
            if provider.supports(instrument)
        ]
        try:
            success = await run_chain(
                candidates,
                label=f"quote:{instrument}",
                is_valid=lambda q: is_valid_quote(q) and q.symbol == instrument,
                attempt_timeout=self._attempt_timeout,
            )
        except ChainExhaustedError as exc:
            logger.warning(
                "All quote providers failed for %s (%d attempted), using synthetic quote",
                instrument,
                len(exc.errors),
            )
            return self._synthetic.generate(instrument), TTL_SYNTHETIC_QUOTE

        provider = self._providers_by_name()[success.name]
        self._synthetic.observe(success.value)
        return success.value, provider.ttl_seconds

    async def _fetch_bulk(self, requested: list[Instrument]) -> dict[Instrument, Quote]:
        """Single bulk call to the first bulk-capable provider; caches what it returns."""
        bulk_provider = next((p for p in self._providers if p.supports_bulk), None)
        if bulk_provider is None:
            return {}

        try:
            fetched = await asyncio.wait_for(
                bulk_provider.fetch_many(requested),
                timeout=self._bulk_timeout,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Bulk fetch from %s failed: %s", bulk_provider.name, exc)
            return {}

        results: dict[Instrument, Quote] = {}
        for symbol, quote in fetched.items():
            if symbol not in requested or not is_valid_quote(quote):
                continue
            results[symbol] = quote
            self._synthetic.observe(quote)
            await self._cache.set(
                price_key(symbol),
                quote.model_dump_json(),
                bulk_provider.ttl_seconds,
            )
        return results

    async def _fetch_individually(self, requested: list[Instrument]) -> dict[Instrument, Quote]:
        """Run the per-symbol chain for every symbol concurrently, all-settled."""
        outcomes = await asyncio.gather(
            *(self.get_current_price(symbol) for symbol in requested),
            return_exceptions=True,
        )

        results: dict[Instrument, Quote] = {}
        for symbol, outcome in zip(requested, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning("Quote chain for %s raised: %s", symbol, outcome)
                results[symbol] = self._synthetic.generate(symbol)
            else:
                results[symbol] = outcome
        return results

    async def _cached_or_synthetic(self, symbol: Instrument) -> Quote:
        """Fresh cached quote if present, else a synthetic one (no provider calls)."""
        cached = await self._cache.get(price_key(symbol))
        if cached is not None:
            return Quote.model_validate_json(cached)
        return self._synthetic.generate(symbol)

    def _providers_by_name(self) -> dict[str, QuoteProvider]:
        return {provider.name: provider for provider in self._providers}
