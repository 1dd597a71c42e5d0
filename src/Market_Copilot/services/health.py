"""Health checks for every quote provider and analysis backend.

Each check runs independently with its own timeout so a single upstream
being down does not block the entire health report.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Sequence
from typing import Final

from Market_Copilot.agents.coordinator import AnalysisCoordinator
from Market_Copilot.models.health import HealthStatus
from Market_Copilot.services.quote_providers import QuoteProvider

logger = logging.getLogger(__name__)

PROVIDER_CHECK_TIMEOUT: Final[float] = 10.0


class HealthService:
    """Check availability of all upstream dependencies.

    Usage::

        health = HealthService(providers, coordinator)
        status = await health.check_all()
        if not status.any_remote_backend:
            logger.warning("No remote analysis backend, local analysis only.")
    """

    def __init__(
        self,
        providers: Sequence[QuoteProvider],
        coordinator: AnalysisCoordinator,
        *,
        provider_timeout: float = PROVIDER_CHECK_TIMEOUT,
    ) -> None:
        self._providers = list(providers)
        self._coordinator = coordinator
        self._provider_timeout = provider_timeout

        logger.info("HealthService initialized.")

    async def check_all(self) -> HealthStatus:
        """Run all checks concurrently and return a consolidated status."""
        provider_results, backend_results = await asyncio.gather(
            self.check_providers(),
            self._coordinator.test_all_backends(),
        )

        status = HealthStatus(
            quote_providers=provider_results,
            analysis_backends=backend_results,
            last_check=datetime.datetime.now(datetime.UTC),
        )
        logger.info(
            "Health check complete: providers=%s backends=%s",
            status.quote_providers,
            status.analysis_backends,
        )
        return status

    async def check_providers(self) -> dict[str, bool]:
        """Fetch a canary quote from each provider. Never raises."""
        outcomes = await asyncio.gather(
            *(p.health_check(timeout=self._provider_timeout) for p in self._providers),
            return_exceptions=True,
        )
        results: dict[str, bool] = {}
        for provider, outcome in zip(self._providers, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning("%s health check raised: %s", provider.name, outcome)
                results[provider.name] = False
            else:
                results[provider.name] = outcome
        return results
