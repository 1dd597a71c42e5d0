"""Tests for custom exception hierarchy.

Covers:
- Inheritance: every error is a MarketCopilotError
- Attributes: symbol, source, http_status, backend accessible
- Caller-input errors are distinct from upstream failures
- ChainExhaustedError message and last_error
"""

import pytest

from Market_Copilot.utils.exceptions import (
    AllBackendsFailedError,
    AnalysisBackendError,
    AnalysisTimeoutError,
    BackendReportedError,
    BackendUnavailableError,
    ChainExhaustedError,
    InsufficientDataError,
    InvalidQuoteError,
    InvalidRequestError,
    MalformedResponseError,
    MarketCopilotError,
    MarketDataError,
    MissingCredentialError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitExceededError,
    UnknownSymbolError,
)


class TestMarketDataError:
    """Tests for the market-data branch of the hierarchy."""

    def test_attributes_accessible(self) -> None:
        exc = MarketDataError("fetch failed", symbol="EURUSD", source="finnhub", http_status=503)
        assert exc.symbol == "EURUSD"
        assert exc.source == "finnhub"
        assert exc.http_status == 503  # noqa: PLR2004
        assert str(exc) == "fetch failed"

    def test_http_status_defaults_to_none(self) -> None:
        exc = MarketDataError("fetch failed", symbol="EURUSD", source="finnhub")
        assert exc.http_status is None

    @pytest.mark.parametrize(
        "exc_cls",
        [ProviderUnavailableError, InvalidQuoteError, MissingCredentialError],
    )
    def test_provider_errors_share_base(self, exc_cls: type[ProviderError]) -> None:
        exc = exc_cls("x", symbol="XAUUSD", source="metals_live")
        assert isinstance(exc, ProviderError)
        assert isinstance(exc, MarketDataError)
        assert isinstance(exc, MarketCopilotError)

    @pytest.mark.parametrize("exc_cls", [RateLimitExceededError, InsufficientDataError])
    def test_other_data_errors(self, exc_cls: type[MarketDataError]) -> None:
        exc = exc_cls("x", symbol="USDJPY", source="alpha_vantage")
        assert isinstance(exc, MarketDataError)
        assert not isinstance(exc, ProviderError)


class TestInvalidRequestError:
    """Tests for caller-input errors."""

    def test_unknown_symbol_message(self) -> None:
        exc = UnknownSymbolError("DOGEUSD")
        assert exc.symbol == "DOGEUSD"
        assert "DOGEUSD" in str(exc)
        assert isinstance(exc, InvalidRequestError)

    def test_not_a_market_data_error(self) -> None:
        assert not issubclass(InvalidRequestError, MarketDataError)


class TestAnalysisErrors:
    """Tests for the analysis branch of the hierarchy."""

    @pytest.mark.parametrize(
        "exc_cls",
        [BackendUnavailableError, MalformedResponseError, BackendReportedError],
    )
    def test_backend_attribute(self, exc_cls: type[AnalysisBackendError]) -> None:
        exc = exc_cls("failed", backend="claude")
        assert exc.backend == "claude"
        assert isinstance(exc, AnalysisBackendError)

    def test_all_backends_failed_keeps_last_error(self) -> None:
        cause = MalformedResponseError("bad json", backend="deepseek")
        exc = AllBackendsFailedError("nothing worked", last_error=cause)
        assert exc.last_error is cause

    def test_timeout_is_copilot_error(self) -> None:
        assert issubclass(AnalysisTimeoutError, MarketCopilotError)


class TestChainExhaustedError:
    """Tests for ChainExhaustedError."""

    def test_message_lists_attempts(self) -> None:
        first = ProviderUnavailableError("timeout", symbol="EURUSD", source="finnhub")
        second = InvalidQuoteError("zero price", symbol="EURUSD", source="yfinance")
        exc = ChainExhaustedError("quote:EURUSD", [("finnhub", first), ("yfinance", second)])

        assert "quote:EURUSD" in str(exc)
        assert "finnhub: timeout" in str(exc)
        assert exc.last_error is second

    def test_no_attempts(self) -> None:
        exc = ChainExhaustedError("bars:EURUSD", [])
        assert "no candidates" in str(exc)
        assert exc.last_error is None
