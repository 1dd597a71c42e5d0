"""Custom exception hierarchy for the Market Copilot application.

Every domain exception inherits from MarketCopilotError. Data acquisition
failures carry the symbol and source involved; analysis failures carry the
backend that produced them. Caller-input problems are InvalidRequestError and
are never retried or absorbed by a fallback chain.
"""

from __future__ import annotations


class MarketCopilotError(Exception):
    """Base exception for all Market Copilot failures."""


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


class MarketDataError(MarketCopilotError):
    """Base exception for all market-data acquisition failures.

    Attributes:
        symbol: The instrument symbol involved in the failure.
        source: The provider that failed (e.g., "finnhub", "yfinance").
        http_status: The HTTP status code, if the failure was HTTP-related.
    """

    def __init__(
        self,
        message: str,
        *,
        symbol: str,
        source: str,
        http_status: int | None = None,
    ) -> None:
        self.symbol = symbol
        self.source = source
        self.http_status = http_status
        super().__init__(message)


class ProviderError(MarketDataError):
    """Raised when a quote or bar provider cannot produce a usable result."""


class ProviderUnavailableError(ProviderError):
    """Raised when a provider is unreachable, times out, or returns HTTP errors."""


class InvalidQuoteError(ProviderError):
    """Raised when a provider responds but the payload is empty or implausible."""


class MissingCredentialError(ProviderError):
    """Raised when a provider needs an API key that was not configured."""


class RateLimitExceededError(MarketDataError):
    """Raised when an upstream rate limit has been hit."""


class InsufficientDataError(MarketDataError):
    """Raised when a bar series is too short for the requested computation."""


# ---------------------------------------------------------------------------
# Caller input
# ---------------------------------------------------------------------------


class InvalidRequestError(MarketCopilotError):
    """Raised when caller-supplied input is invalid (bad interval or length, bad timeout)."""


class UnknownSymbolError(InvalidRequestError):
    """Raised when a symbol is not one of the supported instruments."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Unknown symbol: {symbol!r}")


# ---------------------------------------------------------------------------
# Analysis backends
# ---------------------------------------------------------------------------


class AnalysisBackendError(MarketCopilotError):
    """Base exception for a failed analysis attempt.

    Attributes:
        backend: Identifier of the backend that failed (e.g., "claude").
    """

    def __init__(self, message: str, *, backend: str) -> None:
        self.backend = backend
        super().__init__(message)


class BackendUnavailableError(AnalysisBackendError):
    """Raised on network errors, timeouts, HTTP errors, or a missing API key."""


class MalformedResponseError(AnalysisBackendError):
    """Raised when backend output cannot be parsed into the analysis schema."""


class BackendReportedError(AnalysisBackendError):
    """Raised when the backend answered with an explicit error payload."""


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


class ChainExhaustedError(MarketCopilotError):
    """Raised when every candidate in a fallback chain failed.

    Attributes:
        label: Human-readable name of the chain (e.g., "quote:EURUSD").
        errors: ``(candidate_name, exception)`` pairs in attempt order.
    """

    def __init__(self, label: str, errors: list[tuple[str, Exception]]) -> None:
        self.label = label
        self.errors = errors
        attempted = ", ".join(f"{name}: {exc}" for name, exc in errors) or "no candidates"
        super().__init__(f"All candidates failed for {label} ({attempted})")

    @property
    def last_error(self) -> Exception | None:
        """The exception raised by the final candidate, if any ran."""
        return self.errors[-1][1] if self.errors else None


class AllBackendsFailedError(MarketCopilotError):
    """Raised when no analysis backend, including the local one, succeeded."""

    def __init__(self, message: str, *, last_error: Exception | None = None) -> None:
        self.last_error = last_error
        super().__init__(message)


class AnalysisTimeoutError(MarketCopilotError):
    """Raised when a caller-supplied deadline expires during analysis."""
