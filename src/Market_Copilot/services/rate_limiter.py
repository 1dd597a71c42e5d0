"""Async rate limiter with a token bucket and concurrency cap.

Gates requests to quota-limited upstreams (Alpha Vantage's free tier allows
five calls per minute). Requests wait for a token rather than failing, so
callers should bound the wait with their own timeout.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ALPHA_VANTAGE_REQUESTS_PER_MINUTE: float = 5.0
ALPHA_VANTAGE_MAX_CONCURRENT: int = 1


class RateLimiter:
    """At most ``max_concurrent`` requests in flight, refilled at a fixed rate.

    Usage::

        limiter = RateLimiter(max_concurrent=1, requests_per_second=5 / 60)

        async with limiter.slot():
            response = await client.get(url)
    """

    def __init__(
        self,
        max_concurrent: int = ALPHA_VANTAGE_MAX_CONCURRENT,
        requests_per_second: float = ALPHA_VANTAGE_REQUESTS_PER_MINUTE / 60.0,
        burst: int | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._in_flight = asyncio.Semaphore(max_concurrent)
        self._rate = requests_per_second
        self._capacity = float(burst if burst is not None else max(max_concurrent, 1))
        self._tokens = self._capacity
        self._monotonic = monotonic
        self._updated_at = monotonic()
        self._bucket_lock = asyncio.Lock()

        logger.debug(
            "Rate limiter: %d concurrent, %.3f req/s, burst %d",
            max_concurrent,
            requests_per_second,
            int(self._capacity),
        )

    async def acquire(self) -> None:
        """Wait for a concurrency slot, then for a token."""
        await self._in_flight.acquire()
        try:
            while (wait := await self._try_take()) > 0.0:
                await asyncio.sleep(wait)
        except BaseException:
            self._in_flight.release()
            raise

    def release(self) -> None:
        self._in_flight.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one rate-limited slot for the duration of the block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    @property
    def available_tokens(self) -> float:
        """Tokens currently in the bucket."""
        self._refill()
        return self._tokens

    # ------------------------------------------------------------------
    # Token bucket
    # ------------------------------------------------------------------

    async def _try_take(self) -> float:
        """Take a token and return 0, or return the seconds until one is due."""
        async with self._bucket_lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self._rate

    def _refill(self) -> None:
        now = self._monotonic()
        self._tokens = min(self._capacity, self._tokens + (now - self._updated_at) * self._rate)
        self._updated_at = now
