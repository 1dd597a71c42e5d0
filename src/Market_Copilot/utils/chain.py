"""Sequential fallback-chain driver shared by quote, bar, and analysis chains.

Candidates are tried strictly in order. Each attempt runs under its own
timeout, its result must pass the validity predicate, and a failing
candidate is never retried within the same call. Cancellation always
propagates: only ``Exception`` subclasses are treated as attempt failures.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from Market_Copilot.utils.exceptions import ChainExhaustedError, InvalidRequestError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ChainCandidate(Generic[T]):
    """One named attempt in a fallback chain."""

    name: str
    call: Callable[[], Coroutine[Any, Any, T]]


@dataclass(frozen=True)
class ChainSuccess(Generic[T]):
    """The value produced by the first candidate that succeeded.

    ``position`` is the zero-based index of the winner, so ``position > 0``
    means at least one earlier candidate failed.
    """

    value: T
    name: str
    position: int
    elapsed_ms: int


class InvalidResultError(Exception):
    """Raised internally when a candidate's result fails the validity predicate."""


async def run_chain(
    candidates: Sequence[ChainCandidate[T]],
    *,
    label: str,
    is_valid: Callable[[T], bool] | None = None,
    attempt_timeout: float | None = None,
) -> ChainSuccess[T]:
    """Run *candidates* in order and return the first valid result.

    Args:
        candidates: Ordered attempts; earlier entries have higher priority.
        label: Human-readable chain name for log messages and errors.
        is_valid: Predicate applied to each result. A result that fails it
            counts as a failed attempt.
        attempt_timeout: Seconds allowed per attempt, or ``None`` for no limit.

    Returns:
        A ``ChainSuccess`` describing the winning candidate.

    Raises:
        ChainExhaustedError: When every candidate failed or returned invalid data.
        InvalidRequestError: Re-raised immediately; caller input is never retried.
    """
    errors: list[tuple[str, Exception]] = []

    for position, candidate in enumerate(candidates):
        start = time.monotonic()
        try:
            if attempt_timeout is None:
                value = await candidate.call()
            else:
                value = await asyncio.wait_for(candidate.call(), timeout=attempt_timeout)
            if is_valid is not None and not is_valid(value):
                raise InvalidResultError(f"{candidate.name} returned an invalid result")
        except InvalidRequestError:
            raise
        except TimeoutError as exc:
            errors.append((candidate.name, exc))
            logger.warning(
                "%s: %s timed out after %ss (attempt %d/%d)",
                label,
                candidate.name,
                attempt_timeout,
                position + 1,
                len(candidates),
            )
            continue
        except Exception as exc:  # noqa: BLE001
            errors.append((candidate.name, exc))
            logger.warning(
                "%s: %s failed (attempt %d/%d): %s",
                label,
                candidate.name,
                position + 1,
                len(candidates),
                exc,
            )
            continue

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if position > 0:
            logger.info(
                "%s: served by %s after %d failed attempt(s)",
                label,
                candidate.name,
                position,
            )
        else:
            logger.debug("%s: served by %s in %dms", label, candidate.name, elapsed_ms)
        return ChainSuccess(
            value=value,
            name=candidate.name,
            position=position,
            elapsed_ms=elapsed_ms,
        )

    raise ChainExhaustedError(label, errors)
