"""Analysis coordinator: single-backend failover and comparative consensus.

Single mode walks the backends in provider order (preferred first, then
the default priority, local last) and returns the first success, flagging
``fallback_used`` when an earlier backend failed. Comparative mode asks both
remote backends concurrently, waits for both to settle, and scores their
agreement. If neither answers, the local heuristic result is returned alone.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, replace
from typing import Any, Final

from Market_Copilot.agents.base import AnalysisBackend
from Market_Copilot.agents.consensus import compare_analyses
from Market_Copilot.agents.local import LocalHeuristicBackend
from Market_Copilot.models import (
    AnalysisContext,
    AnalysisRequest,
    AnalysisResult,
    BackendId,
    ComparativeResult,
    ProviderPreference,
)
from Market_Copilot.utils.chain import ChainCandidate, run_chain
from Market_Copilot.utils.exceptions import (
    AllBackendsFailedError,
    ChainExhaustedError,
    InvalidRequestError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_PRIORITY: Final[tuple[BackendId, ...]] = (
    BackendId.CLAUDE,
    BackendId.DEEPSEEK,
    BackendId.LOCAL,
)
COMPARED_BACKENDS: Final[tuple[BackendId, ...]] = (BackendId.CLAUDE, BackendId.DEEPSEEK)
DEFAULT_ATTEMPT_TIMEOUT: Final[float] = 60.0


@dataclass
class BackendStats:
    """Running call counters and token totals for one backend."""

    calls: int = 0
    successes: int = 0
    failures: int = 0
    total_ms: int = 0
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def average_ms(self) -> float:
        return self.total_ms / self.successes if self.successes else 0.0


class AnalysisCoordinator:
    """Route analysis requests across the configured backends.

    Parameters
    ----------
    backends:
        Available backends. A ``LocalHeuristicBackend`` is added when none
        is supplied, so the chain always ends with a backend that cannot fail.
    attempt_timeout:
        Seconds allowed for each backend attempt.
    priority:
        Default provider order used for ``auto``.
    """

    def __init__(
        self,
        backends: Iterable[AnalysisBackend],
        *,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
        priority: Sequence[BackendId] = DEFAULT_PRIORITY,
    ) -> None:
        self._backends: dict[BackendId, AnalysisBackend] = {b.backend_id: b for b in backends}
        self._backends.setdefault(BackendId.LOCAL, LocalHeuristicBackend())
        self._attempt_timeout = attempt_timeout
        self._priority: list[BackendId] = []
        self._stats: dict[BackendId, BackendStats] = {
            backend_id: BackendStats() for backend_id in self._backends
        }
        self.set_priority(priority)

        logger.info(
            "AnalysisCoordinator initialized: priority=%s, attempt_timeout=%.0fs",
            [str(b) for b in self._priority],
            attempt_timeout,
        )

    # ------------------------------------------------------------------
    # Configuration and introspection
    # ------------------------------------------------------------------

    @property
    def priority(self) -> list[BackendId]:
        """Current default provider order."""
        return list(self._priority)

    def set_priority(self, order: Sequence[BackendId | str]) -> None:
        """Replace the default provider order.

        Unknown or unconfigured ids are rejected. The local backend is
        always appended last when the order omits it.

        Raises:
            InvalidRequestError: On an unknown, unconfigured, or repeated id.
        """
        resolved: list[BackendId] = []
        for item in order:
            try:
                backend_id = BackendId(item)
            except ValueError:
                msg = f"Unknown analysis backend: {item!r}"
                raise InvalidRequestError(msg) from None
            if backend_id not in self._backends:
                msg = f"Analysis backend not configured: {backend_id}"
                raise InvalidRequestError(msg)
            if backend_id in resolved:
                msg = f"Analysis backend listed twice: {backend_id}"
                raise InvalidRequestError(msg)
            resolved.append(backend_id)

        resolved = [b for b in resolved if b != BackendId.LOCAL]
        resolved.extend(b for b in DEFAULT_PRIORITY if b in self._backends and b not in resolved)
        self._priority = [b for b in resolved if b != BackendId.LOCAL] + [BackendId.LOCAL]
        logger.info("Analysis priority set to %s", [str(b) for b in self._priority])

    def provider_order(self, preference: ProviderPreference) -> list[BackendId]:
        """Backends to try, in order, for a single-mode request."""
        match preference:
            case ProviderPreference.AUTO | ProviderPreference.BOTH:
                return list(self._priority)
            case _:
                preferred = BackendId(preference.value)
                if preferred not in self._backends:
                    return list(self._priority)
                return [preferred, *(b for b in self._priority if b != preferred)]

    def providers_info(self) -> list[dict[str, Any]]:
        """Describe each backend with its priority position and call stats."""
        info: list[dict[str, Any]] = []
        for position, backend_id in enumerate(self._priority):
            backend = self._backends[backend_id]
            info.append(
                {
                    **backend.describe(),
                    "priority": position,
                    "stats": asdict(self._snapshot(backend_id)),
                }
            )
        return info

    def usage_stats(self) -> dict[str, BackendStats]:
        """Snapshot of call counters and token totals keyed by backend id."""
        return {str(backend_id): self._snapshot(backend_id) for backend_id in self._stats}

    def _snapshot(self, backend_id: BackendId) -> BackendStats:
        input_tokens, output_tokens = self._backends[backend_id].token_usage()
        return replace(
            self._stats[backend_id],
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    async def test_all_backends(self) -> dict[str, bool]:
        """Check every backend concurrently. Never raises."""
        ids = list(self._priority)
        outcomes = await asyncio.gather(
            *(self._backends[b].test_connection() for b in ids),
            return_exceptions=True,
        )
        results: dict[str, bool] = {}
        for backend_id, outcome in zip(ids, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning("Connection test for %s raised: %s", backend_id, outcome)
                results[str(backend_id)] = False
            else:
                results[str(backend_id)] = bool(outcome)
        return results

    async def aclose(self) -> None:
        for backend in self._backends.values():
            await backend.aclose()

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(
        self,
        request: AnalysisRequest,
        context: AnalysisContext,
    ) -> AnalysisResult | ComparativeResult:
        """Dispatch to comparative or single mode according to *request*."""
        if request.comparative:
            return await self.analyze_comparative(context)
        return await self.analyze_single(context, request.provider_preference)

    async def analyze_single(
        self,
        context: AnalysisContext,
        preference: ProviderPreference = ProviderPreference.AUTO,
    ) -> AnalysisResult:
        """Return the first successful result in provider order.

        Raises:
            AllBackendsFailedError: If every backend, local included, failed.
        """
        order = self.provider_order(preference)
        candidates = [
            ChainCandidate(name=str(b), call=functools.partial(self._attempt, b, context))
            for b in order
        ]
        try:
            success = await run_chain(
                candidates,
                label=f"analysis:{context.instrument}",
            )
        except ChainExhaustedError as exc:
            msg = f"No analysis backend succeeded for {context.instrument}"
            raise AllBackendsFailedError(msg, last_error=exc.last_error) from exc

        if success.position > 0:
            logger.info(
                "Analysis for %s served by fallback backend %s",
                context.instrument,
                success.name,
            )
            return success.value.model_copy(update={"fallback_used": True})
        return success.value

    async def analyze_comparative(self, context: AnalysisContext) -> ComparativeResult:
        """Ask both remote backends concurrently and score their agreement."""
        start = time.monotonic()
        remotes = [b for b in COMPARED_BACKENDS if b in self._backends]

        outcomes = await asyncio.gather(
            *(self._attempt(b, context) for b in remotes),
            return_exceptions=True,
        )

        successes: list[AnalysisResult] = []
        for backend_id, outcome in zip(remotes, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning(
                    "Comparative analysis: %s failed for %s: %s",
                    backend_id,
                    context.instrument,
                    outcome,
                )
                continue
            successes.append(outcome)

        def elapsed_ms() -> int:
            return int((time.monotonic() - start) * 1000)

        if len(successes) == len(COMPARED_BACKENDS):
            primary, secondary = successes
            consensus = compare_analyses(primary, secondary)
            logger.info(
                "Comparative analysis for %s: agreement=%d",
                context.instrument,
                consensus.agreement_score,
            )
            return ComparativeResult(
                primary=primary,
                secondary=secondary,
                agreement_score=consensus.agreement_score,
                recommendations_agree=consensus.recommendations_agree,
                confidence_delta=consensus.confidence_delta,
                summary_text=consensus.summary_text,
                fallback_used=False,
                processing_time_ms=elapsed_ms(),
            )

        if successes:
            return ComparativeResult(
                primary=successes[0].model_copy(update={"fallback_used": True}),
                fallback_used=True,
                processing_time_ms=elapsed_ms(),
            )

        logger.warning(
            "Comparative analysis: no remote backend answered for %s, using local analysis",
            context.instrument,
        )
        local = await self._attempt(BackendId.LOCAL, context)
        return ComparativeResult(
            primary=local.model_copy(update={"fallback_used": True}),
            fallback_used=True,
            processing_time_ms=elapsed_ms(),
        )

    async def _attempt(self, backend_id: BackendId, context: AnalysisContext) -> AnalysisResult:
        """One timed, counted call to a backend."""
        backend = self._backends[backend_id]
        stats = self._stats[backend_id]
        stats.calls += 1
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                backend.analyze(context),
                timeout=self._attempt_timeout,
            )
        except Exception:
            stats.failures += 1
            raise
        stats.successes += 1
        stats.total_ms += int((time.monotonic() - start) * 1000)
        return result
