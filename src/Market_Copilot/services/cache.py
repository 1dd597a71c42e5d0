"""In-memory TTL cache shared by the quote and bar services.

Provides a cache-first pattern for data fetching: check cache, fetch on miss,
store, and return. Entries expire lazily: an expired entry is removed the
first time it is read after its TTL, and there is no background sweeper.
Values are JSON strings so callers always receive a fresh copy.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import threading
from collections.abc import Callable
from typing import Final

from pydantic import BaseModel, ConfigDict, computed_field

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: TTL values in seconds
# ---------------------------------------------------------------------------

TTL_SYNTHETIC_QUOTE: Final[int] = 5
TTL_BAR_SERIES: Final[int] = 5 * 60  # 5 minutes

# Key prefixes
KEY_PRICE: Final[str] = "price"
KEY_BARS: Final[str] = "bars"

Clock = Callable[[], datetime.datetime]


def utc_now() -> datetime.datetime:
    """Current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.UTC)


def price_key(symbol: str) -> str:
    """Cache key for the latest quote of *symbol*."""
    return f"{KEY_PRICE}:{symbol}"


def bars_key(symbol: str, interval: str, length: int) -> str:
    """Cache key for a bar series of *length* bars."""
    return f"{KEY_BARS}:{symbol}:{interval}:{length}"


class CacheEntry(BaseModel):
    """A single cached value with metadata for expiration checking."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str  # JSON-serialized payload
    created_at: datetime.datetime
    ttl_seconds: float

    @computed_field  # type: ignore[prop-decorator]
    @property
    def expires_at(self) -> datetime.datetime:
        """Instant after which the entry is stale."""
        return self.created_at + datetime.timedelta(seconds=self.ttl_seconds)

    def is_expired(self, now: datetime.datetime) -> bool:
        """Return True if this entry has exceeded its TTL at *now*."""
        return now > self.expires_at


class TTLCache:
    """Key-value cache with per-entry TTL and per-key fetch locks.

    Usage::

        cache = TTLCache()

        async with cache.key_lock("price:EURUSD"):
            cached = await cache.get("price:EURUSD")
            if cached is None:
                quote = await fetch_quote("EURUSD")
                await cache.set("price:EURUSD", quote.model_dump_json(), 5)

    Holding ``key_lock`` across check, fetch, and store means concurrent
    requests for the same key perform a single upstream fetch.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or utc_now
        self._entries: dict[str, CacheEntry] = {}
        self._entries_lock = threading.Lock()
        self._key_locks: dict[str, asyncio.Lock] = {}

        logger.debug("TTLCache initialized")

    async def get(self, key: str) -> str | None:
        """Return the cached value, or None on miss or expiry.

        Expired entries are removed as a side effect.
        """
        now = self._clock()
        with self._entries_lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache miss: %s", key)
                return None
            if entry.is_expired(now):
                del self._entries[key]
                logger.debug("Cache expired: %s", key)
                return None
        logger.debug("Cache hit: %s", key)
        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: float) -> None:
        """Store *value* under *key* for *ttl_seconds*."""
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl_seconds=ttl_seconds,
        )
        with self._entries_lock:
            self._entries[key] = entry
        logger.debug("Cache set: %s (ttl=%ss)", key, ttl_seconds)

    async def invalidate(self, key: str) -> None:
        """Remove a specific key."""
        with self._entries_lock:
            self._entries.pop(key, None)
        logger.debug("Cache invalidated: %s", key)

    async def invalidate_pattern(self, pattern: str) -> int:
        """Remove all keys matching *pattern* and return how many were removed.

        Supports simple glob patterns with ``*`` as a wildcard suffix.
        For example, ``"bars:EURUSD:*"`` removes every cached EURUSD series.
        """
        with self._entries_lock:
            if pattern.endswith("*"):
                prefix = pattern[:-1]
                keys_to_remove = [k for k in self._entries if k.startswith(prefix)]
            else:
                keys_to_remove = [k for k in self._entries if k == pattern]
            for key in keys_to_remove:
                del self._entries[key]

        logger.debug(
            "Cache invalidated pattern '%s': %d entries removed",
            pattern,
            len(keys_to_remove),
        )
        return len(keys_to_remove)

    def key_lock(self, key: str) -> asyncio.Lock:
        """Return the asyncio lock that serializes fetches for *key*."""
        with self._entries_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._key_locks[key] = lock
        return lock

    def __len__(self) -> int:
        with self._entries_lock:
            return len(self._entries)
