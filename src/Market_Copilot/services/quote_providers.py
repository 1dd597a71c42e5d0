"""Upstream quote providers: Finnhub, Yahoo Finance, Alpha Vantage, metals.live.

Every provider satisfies the same contract: ``fetch()`` either returns a
complete, validated ``Quote`` or raises a ``ProviderError`` subclass. Network
errors, HTTP errors, rejected credentials, malformed and empty payloads are
all normalized here so the quote chain only ever sees one failure type.
"""

from __future__ import annotations

import abc
import asyncio
import datetime
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Final

import httpx
import pandas as pd
import pydantic
import yfinance as yf

from Market_Copilot.models.enums import Instrument
from Market_Copilot.models.market_data import Quote
from Market_Copilot.services._helpers import (
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    build_http_client,
    safe_float,
    safe_int,
)
from Market_Copilot.services.rate_limiter import RateLimiter
from Market_Copilot.utils.exceptions import (
    InvalidQuoteError,
    MissingCredentialError,
    ProviderUnavailableError,
    RateLimitExceededError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FINNHUB_QUOTE_URL: Final[str] = "https://finnhub.io/api/v1/quote"
ALPHA_VANTAGE_URL: Final[str] = "https://www.alphavantage.co/query"
METALS_LIVE_GOLD_URL: Final[str] = "https://api.metals.live/v1/spot/gold"

TTL_FINNHUB: Final[int] = 5
TTL_YAHOO: Final[int] = 30
TTL_ALPHA_VANTAGE: Final[int] = 60
TTL_METALS_LIVE: Final[int] = 60

FINNHUB_SYMBOLS: Final[dict[Instrument, str]] = {
    Instrument.EURUSD: "OANDA:EUR_USD",
    Instrument.GBPUSD: "OANDA:GBP_USD",
    Instrument.USDJPY: "OANDA:USD_JPY",
    Instrument.XAUUSD: "OANDA:XAU_USD",
    Instrument.SPX500: "INDEX:SPX",
    Instrument.NAS100: "INDEX:NDX",
    Instrument.GER40: "INDEX:DAX",
}

YAHOO_SYMBOLS: Final[dict[Instrument, str]] = {
    Instrument.EURUSD: "EURUSD=X",
    Instrument.GBPUSD: "GBPUSD=X",
    Instrument.USDJPY: "USDJPY=X",
    Instrument.XAUUSD: "GC=F",
    Instrument.SPX500: "^GSPC",
    Instrument.NAS100: "^NDX",
    Instrument.GER40: "^GDAXI",
}

# Alpha Vantage is only used for currency pairs; its index coverage is via
# ETFs whose prices are not index levels.
ALPHA_VANTAGE_PAIRS: Final[dict[Instrument, tuple[str, str]]] = {
    Instrument.EURUSD: ("EUR", "USD"),
    Instrument.GBPUSD: ("GBP", "USD"),
    Instrument.USDJPY: ("USD", "JPY"),
}

YAHOO_BULK_PERIOD: Final[str] = "5d"
YAHOO_BULK_INTERVAL: Final[str] = "1d"

HTTP_OK: Final[int] = 200
AUTH_FAILURE_STATUSES: Final[frozenset[int]] = frozenset({401, 403})


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def build_quote(
    symbol: Instrument,
    *,
    price: float | None,
    source: str,
    change: float | None = None,
    change_percent: float | None = None,
    previous_close: float | None = None,
    high: float | None = None,
    low: float | None = None,
    volume: int = 0,
) -> Quote:
    """Assemble a ``Quote`` from loosely typed upstream fields.

    Missing change values are derived from *previous_close* when available.
    A missing high or low falls back to the price itself.

    Raises:
        InvalidQuoteError: If the price is missing, non-finite, or not positive.
    """
    if price is None or price <= 0:
        msg = f"{source} returned no usable price for {symbol} (got {price!r})"
        raise InvalidQuoteError(msg, symbol=symbol, source=source)

    if change is None and previous_close is not None and previous_close > 0:
        change = price - previous_close
    if change_percent is None and change is not None:
        base = price - change
        change_percent = (change / base * 100.0) if base > 0 else 0.0

    try:
        return Quote(
            symbol=symbol,
            price=price,
            change=change if change is not None else 0.0,
            change_percent=change_percent if change_percent is not None else 0.0,
            volume=max(volume, 0),
            high_24h=high if high is not None and high > 0 else price,
            low_24h=low if low is not None and low > 0 else price,
            captured_at=_now(),
            source=source,
        )
    except pydantic.ValidationError as exc:
        msg = f"{source} returned an invalid quote for {symbol}: {exc}"
        raise InvalidQuoteError(msg, symbol=symbol, source=source) from exc


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------


class QuoteProvider(abc.ABC):
    """A single upstream source of current quotes.

    Attributes:
        name: Provider identifier used in logs, cache metadata, and health reports.
        ttl_seconds: How long a quote from this provider stays fresh in the cache.
        supports_bulk: True when ``fetch_many`` can fetch several symbols in one call.
    """

    name: str = "provider"
    ttl_seconds: float = TTL_FINNHUB
    supports_bulk: bool = False

    def supports(self, symbol: Instrument) -> bool:  # noqa: ARG002
        """Return True if this provider can quote *symbol* at all."""
        return True

    @abc.abstractmethod
    async def fetch(self, symbol: Instrument) -> Quote:
        """Return a validated quote for *symbol* or raise ``ProviderError``."""

    async def fetch_many(self, symbols: Iterable[Instrument]) -> dict[Instrument, Quote]:
        """Fetch several symbols in one upstream call.

        Symbols the upstream did not return are simply absent from the result.
        """
        msg = f"{self.name} does not support bulk fetches"
        raise NotImplementedError(msg)

    async def health_check(self, timeout: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS) -> bool:
        """Return True if a canary quote can be fetched. Never raises."""
        canary = next((s for s in Instrument if self.supports(s)), None)
        if canary is None:
            return False
        try:
            await asyncio.wait_for(self.fetch(canary), timeout=timeout)
        except Exception as exc:  # noqa: BLE001
            logger.info("Health check failed for %s: %s", self.name, exc)
            return False
        return True

    async def aclose(self) -> None:  # noqa: B027
        """Release any network resources held by the provider."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, ttl={self.ttl_seconds})"


class HttpQuoteProvider(QuoteProvider):
    """Base for providers reached over HTTP with a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else build_http_client(timeout_seconds)

    async def aclose(self) -> None:
        """Close the httpx client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(
        self,
        url: str,
        *,
        symbol: Instrument,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET *url* and decode the JSON body, normalizing every failure mode."""
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            msg = f"{self.name} request timed out for {symbol}"
            raise ProviderUnavailableError(msg, symbol=symbol, source=self.name) from exc
        except httpx.HTTPError as exc:
            msg = f"{self.name} request failed for {symbol}: {exc}"
            raise ProviderUnavailableError(msg, symbol=symbol, source=self.name) from exc

        if response.status_code in AUTH_FAILURE_STATUSES:
            msg = f"{self.name} rejected credentials (HTTP {response.status_code})"
            raise ProviderUnavailableError(
                msg,
                symbol=symbol,
                source=self.name,
                http_status=response.status_code,
            )
        if response.status_code != HTTP_OK:
            msg = f"{self.name} returned HTTP {response.status_code} for {symbol}"
            raise ProviderUnavailableError(
                msg,
                symbol=symbol,
                source=self.name,
                http_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            msg = f"{self.name} returned a non-JSON body for {symbol}"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name) from exc


# ---------------------------------------------------------------------------
# Finnhub
# ---------------------------------------------------------------------------


class FinnhubProvider(HttpQuoteProvider):
    """Real-time quotes from Finnhub's ``/quote`` endpoint.

    Fields used: ``c`` (current), ``d`` (change), ``dp`` (change percent),
    ``h`` and ``l`` (day range). A missing or zero ``c`` means no data.
    """

    name = "finnhub"
    ttl_seconds = TTL_FINNHUB

    def __init__(
        self,
        api_key: str | None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client=client, timeout_seconds=timeout_seconds)
        self._api_key = api_key

        logger.info(
            "FinnhubProvider initialized: api_key=%s",
            "configured" if api_key else "not configured",
        )

    def supports(self, symbol: Instrument) -> bool:
        return symbol in FINNHUB_SYMBOLS

    async def fetch(self, symbol: Instrument) -> Quote:
        if not self._api_key:
            msg = "FINNHUB_API_KEY is not configured"
            raise MissingCredentialError(msg, symbol=symbol, source=self.name)

        data = await self._get_json(
            FINNHUB_QUOTE_URL,
            symbol=symbol,
            params={"symbol": FINNHUB_SYMBOLS[symbol], "token": self._api_key},
        )
        if not isinstance(data, dict):
            msg = f"finnhub returned an unexpected payload for {symbol}"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)

        return build_quote(
            symbol,
            price=safe_float(data.get("c")),
            change=safe_float(data.get("d")),
            change_percent=safe_float(data.get("dp")),
            previous_close=safe_float(data.get("pc")),
            high=safe_float(data.get("h")),
            low=safe_float(data.get("l")),
            source=self.name,
        )


# ---------------------------------------------------------------------------
# Yahoo Finance
# ---------------------------------------------------------------------------


class YahooFinanceProvider(QuoteProvider):
    """Delayed quotes from Yahoo Finance via yfinance.

    yfinance is synchronous, so every call runs in ``asyncio.to_thread``.
    ``fetch_many`` downloads all requested symbols with a single
    ``yf.download`` call and is the bulk path of the quote chain.
    """

    name = "yfinance"
    ttl_seconds = TTL_YAHOO
    supports_bulk = True

    def supports(self, symbol: Instrument) -> bool:
        return symbol in YAHOO_SYMBOLS

    async def fetch(self, symbol: Instrument) -> Quote:
        yahoo_symbol = YAHOO_SYMBOLS[symbol]
        try:
            info = await asyncio.to_thread(self._sync_fast_info, yahoo_symbol)
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            msg = f"yfinance has no quote for {yahoo_symbol}: {exc}"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name) from exc
        except Exception as exc:  # noqa: BLE001
            # yfinance surfaces network failures with inconsistent types
            msg = f"yfinance request failed for {yahoo_symbol}: {exc}"
            raise ProviderUnavailableError(msg, symbol=symbol, source=self.name) from exc

        return build_quote(
            symbol,
            price=safe_float(info.get("last_price")),
            previous_close=safe_float(info.get("previous_close")),
            high=safe_float(info.get("day_high")),
            low=safe_float(info.get("day_low")),
            volume=safe_int(info.get("volume")),
            source=self.name,
        )

    async def fetch_many(self, symbols: Iterable[Instrument]) -> dict[Instrument, Quote]:
        wanted = [s for s in symbols if self.supports(s)]
        if not wanted:
            return {}
        tickers = [YAHOO_SYMBOLS[s] for s in wanted]
        try:
            frame = await asyncio.to_thread(self._sync_download, tickers)
        except Exception as exc:  # noqa: BLE001
            msg = f"yfinance bulk download failed: {exc}"
            raise ProviderUnavailableError(msg, symbol=",".join(wanted), source=self.name) from exc

        quotes: dict[Instrument, Quote] = {}
        for symbol in wanted:
            try:
                quotes[symbol] = self._quote_from_download(frame, symbol)
            except InvalidQuoteError as exc:
                logger.debug("yfinance bulk: skipping %s: %s", symbol, exc)
        logger.info("yfinance bulk: %d/%d symbols returned", len(quotes), len(wanted))
        return quotes

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _sync_fast_info(yahoo_symbol: str) -> dict[str, Any]:
        """Read the latest quote fields from ``Ticker.fast_info`` (blocking)."""
        fast_info = yf.Ticker(yahoo_symbol).fast_info
        return {
            "last_price": fast_info.last_price,
            "previous_close": fast_info.previous_close,
            "day_high": fast_info.day_high,
            "day_low": fast_info.day_low,
            "volume": fast_info.last_volume,
        }

    @staticmethod
    def _sync_download(tickers: list[str]) -> pd.DataFrame:
        """Download recent daily bars for all *tickers* in one request (blocking)."""
        frame: pd.DataFrame = yf.download(
            tickers=tickers,
            period=YAHOO_BULK_PERIOD,
            interval=YAHOO_BULK_INTERVAL,
            group_by="ticker",
            auto_adjust=False,
            progress=False,
            threads=False,
        )
        return frame

    def _quote_from_download(self, frame: pd.DataFrame, symbol: Instrument) -> Quote:
        """Build a quote for *symbol* from a ``group_by="ticker"`` download frame."""
        yahoo_symbol = YAHOO_SYMBOLS[symbol]
        if frame.empty:
            msg = "empty download"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)
        if isinstance(frame.columns, pd.MultiIndex):
            if yahoo_symbol not in frame.columns.get_level_values(0):
                msg = f"{yahoo_symbol} missing from download"
                raise InvalidQuoteError(msg, symbol=symbol, source=self.name)
            sub = frame[yahoo_symbol]
        else:
            sub = frame

        closes = sub["Close"].dropna()
        if closes.empty:
            msg = f"{yahoo_symbol} has no closes"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)

        last_row = sub.loc[closes.index[-1]]
        previous_close = float(closes.iloc[-2]) if len(closes) > 1 else None
        return build_quote(
            symbol,
            price=safe_float(closes.iloc[-1]),
            previous_close=previous_close,
            high=safe_float(last_row.get("High")),
            low=safe_float(last_row.get("Low")),
            volume=safe_int(last_row.get("Volume")),
            source=self.name,
        )


# ---------------------------------------------------------------------------
# Alpha Vantage
# ---------------------------------------------------------------------------


class AlphaVantageProvider(HttpQuoteProvider):
    """Currency-pair quotes from Alpha Vantage's ``CURRENCY_EXCHANGE_RATE``.

    The free tier allows five requests per minute, so calls are gated by a
    ``RateLimiter``. A quota notice in the body surfaces as
    ``RateLimitExceededError`` and the chain moves on.
    """

    name = "alpha_vantage"
    ttl_seconds = TTL_ALPHA_VANTAGE

    def __init__(
        self,
        api_key: str = "demo",
        *,
        rate_limiter: RateLimiter | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client=client, timeout_seconds=timeout_seconds)
        self._api_key = api_key
        self._rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    def supports(self, symbol: Instrument) -> bool:
        return symbol in ALPHA_VANTAGE_PAIRS

    async def fetch(self, symbol: Instrument) -> Quote:
        if symbol not in ALPHA_VANTAGE_PAIRS:
            msg = f"alpha_vantage does not quote {symbol}"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)

        from_currency, to_currency = ALPHA_VANTAGE_PAIRS[symbol]
        async with self._rate_limiter.slot():
            data = await self._get_json(
                ALPHA_VANTAGE_URL,
                symbol=symbol,
                params={
                    "function": "CURRENCY_EXCHANGE_RATE",
                    "from_currency": from_currency,
                    "to_currency": to_currency,
                    "apikey": self._api_key,
                },
            )

        if not isinstance(data, dict):
            msg = f"alpha_vantage returned an unexpected payload for {symbol}"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)
        if "Note" in data or "Information" in data:
            msg = str(data.get("Note") or data.get("Information"))
            raise RateLimitExceededError(msg, symbol=symbol, source=self.name)
        if "Error Message" in data:
            raise InvalidQuoteError(str(data["Error Message"]), symbol=symbol, source=self.name)

        rate = data.get("Realtime Currency Exchange Rate")
        if not isinstance(rate, dict):
            msg = f"alpha_vantage response for {symbol} lacks an exchange rate"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)

        price = safe_float(rate.get("5. Exchange Rate"))
        bid = safe_float(rate.get("8. Bid Price"))
        ask = safe_float(rate.get("9. Ask Price"))
        return build_quote(
            symbol,
            price=price,
            high=max(ask, price) if ask is not None and price is not None else None,
            low=min(bid, price) if bid is not None and price is not None else None,
            source=self.name,
        )


# ---------------------------------------------------------------------------
# metals.live
# ---------------------------------------------------------------------------


class MetalsLiveProvider(HttpQuoteProvider):
    """Gold spot price from metals.live (XAUUSD only, no key required)."""

    name = "metals_live"
    ttl_seconds = TTL_METALS_LIVE

    def supports(self, symbol: Instrument) -> bool:
        return symbol == Instrument.XAUUSD

    async def fetch(self, symbol: Instrument) -> Quote:
        if symbol != Instrument.XAUUSD:
            msg = f"metals_live does not quote {symbol}"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)

        data = await self._get_json(METALS_LIVE_GOLD_URL, symbol=symbol)
        # The endpoint has served both a bare object and a one-element list.
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            msg = "metals_live returned an unexpected payload"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name)

        return build_quote(
            symbol,
            price=safe_float(data.get("price", data.get("gold"))),
            change=safe_float(data.get("ch")),
            change_percent=safe_float(data.get("chp")),
            source=self.name,
        )
