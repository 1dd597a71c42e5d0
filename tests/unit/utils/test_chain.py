"""Tests for the sequential fallback-chain driver.

Covers:
- First success wins and later candidates are never called
- Fallthrough on exception, timeout, and invalid result
- ChainExhaustedError carries every attempt in order
- InvalidRequestError propagates immediately
- Cancellation is never swallowed
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from Market_Copilot.utils.chain import ChainCandidate, run_chain
from Market_Copilot.utils.exceptions import (
    ChainExhaustedError,
    InvalidRequestError,
    ProviderUnavailableError,
)


def _failing(name: str) -> AsyncMock:
    return AsyncMock(
        side_effect=ProviderUnavailableError(f"{name} down", symbol="EURUSD", source=name)
    )


class TestRunChain:
    """Tests for run_chain()."""

    @pytest.mark.asyncio()
    async def test_first_success_short_circuits(self) -> None:
        first = AsyncMock(return_value=1.0850)
        second = AsyncMock(return_value=1.0900)

        success = await run_chain(
            [ChainCandidate("first", first), ChainCandidate("second", second)],
            label="quote:EURUSD",
        )

        assert success.value == 1.0850  # noqa: PLR2004
        assert success.name == "first"
        assert success.position == 0
        second.assert_not_called()

    @pytest.mark.asyncio()
    async def test_falls_through_on_exception(self) -> None:
        first = _failing("finnhub")
        second = AsyncMock(return_value=1.0900)

        success = await run_chain(
            [ChainCandidate("finnhub", first), ChainCandidate("yfinance", second)],
            label="quote:EURUSD",
        )

        assert success.name == "yfinance"
        assert success.position == 1
        first.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_invalid_result_counts_as_failure(self) -> None:
        first = AsyncMock(return_value=-1.0)
        second = AsyncMock(return_value=1.0900)

        success = await run_chain(
            [ChainCandidate("bad", first), ChainCandidate("good", second)],
            label="quote:EURUSD",
            is_valid=lambda price: price > 0,
        )

        assert success.name == "good"

    @pytest.mark.asyncio()
    async def test_slow_candidate_times_out(self) -> None:
        async def slow() -> float:
            await asyncio.sleep(5)
            return 1.0

        fast = AsyncMock(return_value=2.0)

        success = await run_chain(
            [ChainCandidate("slow", slow), ChainCandidate("fast", fast)],
            label="quote:EURUSD",
            attempt_timeout=0.01,
        )

        assert success.name == "fast"

    @pytest.mark.asyncio()
    async def test_exhaustion_lists_every_attempt(self) -> None:
        with pytest.raises(ChainExhaustedError) as exc_info:
            await run_chain(
                [
                    ChainCandidate("finnhub", _failing("finnhub")),
                    ChainCandidate("yfinance", _failing("yfinance")),
                ],
                label="quote:GBPUSD",
            )

        err = exc_info.value
        assert err.label == "quote:GBPUSD"
        assert [name for name, _ in err.errors] == ["finnhub", "yfinance"]
        assert isinstance(err.last_error, ProviderUnavailableError)

    @pytest.mark.asyncio()
    async def test_empty_chain_is_exhausted(self) -> None:
        with pytest.raises(ChainExhaustedError) as exc_info:
            await run_chain([], label="empty")
        assert exc_info.value.last_error is None

    @pytest.mark.asyncio()
    async def test_invalid_request_is_not_retried(self) -> None:
        first = AsyncMock(side_effect=InvalidRequestError("bad interval"))
        second = AsyncMock(return_value=1.0)

        with pytest.raises(InvalidRequestError):
            await run_chain(
                [ChainCandidate("first", first), ChainCandidate("second", second)],
                label="bars:EURUSD",
            )
        second.assert_not_called()

    @pytest.mark.asyncio()
    async def test_cancellation_propagates(self) -> None:
        started = asyncio.Event()

        async def blocking() -> float:
            started.set()
            await asyncio.sleep(10)
            return 1.0

        fallback = AsyncMock(return_value=2.0)
        task = asyncio.create_task(
            run_chain(
                [ChainCandidate("blocking", blocking), ChainCandidate("fallback", fallback)],
                label="quote:EURUSD",
            )
        )
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        fallback.assert_not_called()
