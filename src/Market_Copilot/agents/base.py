"""Common interface implemented by every analysis backend."""

from __future__ import annotations

import abc
from typing import Any

from Market_Copilot.models import AnalysisContext, AnalysisResult, BackendId


class AnalysisBackend(abc.ABC):
    """A source of trade analyses.

    ``analyze`` either returns a complete ``AnalysisResult`` or raises an
    ``AnalysisBackendError`` subclass. ``test_connection`` never raises.
    """

    backend_id: BackendId
    is_remote: bool = True

    @abc.abstractmethod
    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        """Analyze the market snapshot in *context*."""

    @abc.abstractmethod
    async def test_connection(self) -> bool:
        """Return True if the backend is currently reachable."""

    def describe(self) -> dict[str, Any]:
        """Static description for provider listings."""
        return {"id": str(self.backend_id), "remote": self.is_remote}

    def token_usage(self) -> tuple[int, int]:
        """Cumulative ``(input_tokens, output_tokens)`` spent by this backend."""
        return 0, 0

    async def aclose(self) -> None:  # noqa: B027
        """Release any resources held by the backend."""
