"""Bar series store: cached OHLCV windows per (symbol, interval, length).

Sources are tried in order through the shared chain driver. The synthetic
random-walk source is always last and cannot fail, so a series is always
returned. Real sources (Yahoo Finance) sit in front of it behind the same
interface without any change to downstream consumers.
"""

from __future__ import annotations

import abc
import asyncio
import datetime
import functools
import logging
from collections.abc import Sequence
from typing import Any, Final

import pandas as pd
import pydantic
import yfinance as yf

from Market_Copilot.models.enums import BarInterval, Instrument
from Market_Copilot.models.instruments import resolve_instrument
from Market_Copilot.models.market_data import Bar, BarSeries
from Market_Copilot.services._helpers import EXTERNAL_CALL_TIMEOUT_SECONDS, safe_int
from Market_Copilot.services.cache import TTL_BAR_SERIES, TTLCache, bars_key
from Market_Copilot.services.quote_providers import YAHOO_SYMBOLS
from Market_Copilot.services.synthetic import SyntheticQuoteGenerator
from Market_Copilot.utils.chain import ChainCandidate, run_chain
from Market_Copilot.utils.exceptions import (
    InsufficientDataError,
    InvalidQuoteError,
    InvalidRequestError,
    ProviderUnavailableError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_INTERVAL: Final[str] = BarInterval.H1.value
DEFAULT_LENGTH: Final[int] = 100
MIN_LENGTH: Final[int] = 2
MAX_LENGTH: Final[int] = 1000

INTERVAL_SECONDS: Final[dict[BarInterval, int]] = {
    BarInterval.M1: 60,
    BarInterval.M5: 5 * 60,
    BarInterval.M15: 15 * 60,
    BarInterval.M30: 30 * 60,
    BarInterval.H1: 60 * 60,
    BarInterval.H4: 4 * 60 * 60,
    BarInterval.D1: 24 * 60 * 60,
}

# yfinance interval and look-back period per bar interval. Yahoo has no
# 4-hour bars, so hourly bars are resampled.
YAHOO_INTERVALS: Final[dict[BarInterval, tuple[str, str]]] = {
    BarInterval.M1: ("1m", "5d"),
    BarInterval.M5: ("5m", "1mo"),
    BarInterval.M15: ("15m", "1mo"),
    BarInterval.M30: ("30m", "1mo"),
    BarInterval.H1: ("1h", "3mo"),
    BarInterval.H4: ("1h", "6mo"),
    BarInterval.D1: ("1d", "2y"),
}

SYNTHETIC_SOURCE: Final[str] = "synthetic"


def parse_interval(interval: str | BarInterval) -> BarInterval:
    """Validate *interval* against the supported set.

    Raises:
        InvalidRequestError: If the interval is not supported.
    """
    try:
        return BarInterval(interval)
    except ValueError:
        supported = ", ".join(i.value for i in BarInterval)
        msg = f"Unsupported interval {interval!r}; expected one of: {supported}"
        raise InvalidRequestError(msg) from None


def _validate_length(length: int) -> int:
    if not MIN_LENGTH <= length <= MAX_LENGTH:
        msg = f"length must be between {MIN_LENGTH} and {MAX_LENGTH}, got {length}"
        raise InvalidRequestError(msg)
    return length


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class BarSource(abc.ABC):
    """A supplier of bar series for one (symbol, interval, length)."""

    name: str = "source"

    @abc.abstractmethod
    async def fetch_bars(
        self, symbol: Instrument, interval: BarInterval, length: int
    ) -> BarSeries:
        """Return exactly *length* bars ending at the most recent bar."""


class SyntheticBarSource(BarSource):
    """Random-walk bars seeded from the synthetic generator's current price.

    Each step moves the price by at most ``volatility_pct`` percent, and each
    bar's high and low sit at most ``volatility_pct`` percent from its open.
    Timestamps are interval-spaced and end now.
    """

    name = SYNTHETIC_SOURCE

    def __init__(self, generator: SyntheticQuoteGenerator) -> None:
        self._generator = generator

    async def fetch_bars(
        self, symbol: Instrument, interval: BarInterval, length: int
    ) -> BarSeries:
        return self.generate(symbol, interval, length)

    def generate(
        self,
        symbol: Instrument,
        interval: BarInterval,
        length: int,
        *,
        end: datetime.datetime | None = None,
    ) -> BarSeries:
        """Build the series synchronously."""
        rng = self._generator.rng
        profile = self._generator.profile(symbol)
        volatility = profile.volatility_pct
        step = datetime.timedelta(seconds=INTERVAL_SECONDS[interval])
        end_time = end if end is not None else datetime.datetime.now(datetime.UTC)

        price = self._generator.baseline(symbol)
        bars: list[Bar] = []
        for i in range(length):
            timestamp = end_time - step * (length - 1 - i)
            price *= 1.0 + (rng.random() - 0.5) * volatility / 50.0

            open_ = price
            variation = volatility / 100.0
            high = open_ * (1.0 + rng.random() * variation)
            low = open_ * (1.0 - rng.random() * variation)
            close = min(max(low + rng.random() * (high - low), low), high)
            volume = int(profile.typical_volume * (0.8 + rng.random() * 0.4))

            bars.append(
                Bar(
                    timestamp=timestamp,
                    open=open_,
                    high=high,
                    low=low,
                    close=close,
                    volume=volume,
                )
            )
            price = close

        return BarSeries(symbol=symbol, interval=interval.value, bars=bars)


class YahooBarSource(BarSource):
    """Historical bars from Yahoo Finance via yfinance ``Ticker.history``."""

    name = "yfinance"

    def __init__(self, timeout_seconds: float = EXTERNAL_CALL_TIMEOUT_SECONDS) -> None:
        self._timeout_seconds = timeout_seconds

    async def fetch_bars(
        self, symbol: Instrument, interval: BarInterval, length: int
    ) -> BarSeries:
        yahoo_symbol = YAHOO_SYMBOLS[symbol]
        yf_interval, period = YAHOO_INTERVALS[interval]

        try:
            frame = await asyncio.wait_for(
                asyncio.to_thread(self._sync_history, yahoo_symbol, yf_interval, period),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as exc:
            msg = f"yfinance history timed out for {yahoo_symbol}"
            raise ProviderUnavailableError(msg, symbol=symbol, source=self.name) from exc
        except Exception as exc:  # noqa: BLE001
            # yfinance surfaces network failures with inconsistent types
            msg = f"yfinance history failed for {yahoo_symbol}: {exc}"
            raise ProviderUnavailableError(msg, symbol=symbol, source=self.name) from exc

        if interval == BarInterval.H4 and not frame.empty:
            frame = frame.resample("4h").agg(
                {"Open": "first", "High": "max", "Low": "min", "Close": "last", "Volume": "sum"}
            )

        frame = frame.dropna(subset=["Open", "High", "Low", "Close"]).tail(length)
        if len(frame) < length:
            msg = f"yfinance returned {len(frame)} bars for {yahoo_symbol}, need {length}"
            raise InsufficientDataError(msg, symbol=symbol, source=self.name)

        try:
            bars = _dataframe_to_bars(frame)
            return BarSeries(symbol=symbol, interval=interval.value, bars=bars)
        except pydantic.ValidationError as exc:
            msg = f"yfinance returned inconsistent bars for {yahoo_symbol}: {exc}"
            raise InvalidQuoteError(msg, symbol=symbol, source=self.name) from exc

    @staticmethod
    def _sync_history(yahoo_symbol: str, yf_interval: str, period: str) -> pd.DataFrame:
        """Blocking yfinance history call."""
        frame: pd.DataFrame = yf.Ticker(yahoo_symbol).history(
            period=period,
            interval=yf_interval,
            auto_adjust=False,
        )
        return frame


def _dataframe_to_bars(df: pd.DataFrame) -> list[Bar]:
    """Convert a yfinance history DataFrame to a list of ``Bar`` models."""
    bars: list[Bar] = []
    for idx, row in df.iterrows():
        ts: Any = idx
        timestamp = ts.to_pydatetime() if hasattr(ts, "to_pydatetime") else ts
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=datetime.UTC)
        bars.append(
            Bar(
                timestamp=timestamp,
                open=float(row["Open"]),
                high=float(row["High"]),
                low=float(row["Low"]),
                close=float(row["Close"]),
                volume=safe_int(row.get("Volume", 0)),
            )
        )
    return bars


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class BarSeriesStore:
    """Cache-first access to bar series with a synthetic last resort.

    Usage::

        store = BarSeriesStore(cache, synthetic_source=SyntheticBarSource(generator))
        series = await store.get_bar_series("EURUSD", "1H", 50)
    """

    def __init__(
        self,
        cache: TTLCache,
        synthetic_source: SyntheticBarSource,
        sources: Sequence[BarSource] = (),
        *,
        attempt_timeout: float = EXTERNAL_CALL_TIMEOUT_SECONDS,
        ttl_seconds: float = TTL_BAR_SERIES,
    ) -> None:
        self._cache = cache
        self._sources: list[BarSource] = [*sources, synthetic_source]
        self._attempt_timeout = attempt_timeout
        self._ttl_seconds = ttl_seconds

        logger.info("BarSeriesStore initialized: sources=%s", [s.name for s in self._sources])

    async def get_bar_series(
        self,
        symbol: str | Instrument,
        interval: str | BarInterval = DEFAULT_INTERVAL,
        length: int = DEFAULT_LENGTH,
    ) -> BarSeries:
        """Return *length* bars for *symbol* at *interval*.

        Raises:
            UnknownSymbolError: If *symbol* is not supported.
            InvalidRequestError: If *interval* or *length* is out of range.
        """
        instrument = resolve_instrument(symbol)
        bar_interval = parse_interval(interval)
        _validate_length(length)
        key = bars_key(instrument, bar_interval.value, length)

        async with self._cache.key_lock(key):
            cached = await self._cache.get(key)
            if cached is not None:
                return BarSeries.model_validate_json(cached)

            candidates = [
                ChainCandidate(
                    name=source.name,
                    call=functools.partial(source.fetch_bars, instrument, bar_interval, length),
                )
                for source in self._sources
            ]
            success = await run_chain(
                candidates,
                label=f"bars:{instrument}:{bar_interval.value}",
                is_valid=lambda series: len(series) == length and series.symbol == instrument,
                attempt_timeout=self._attempt_timeout,
            )
            await self._cache.set(key, success.value.model_dump_json(), self._ttl_seconds)
            return success.value
