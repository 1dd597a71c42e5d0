"""Tests for analysis request, payload, and result models."""

from collections.abc import Callable

import pydantic
import pytest

from Market_Copilot.models import (
    AnalysisRequest,
    AnalysisResult,
    BackendId,
    ComparativeResult,
    ProviderPreference,
    RemoteAnalysisPayload,
    TradeAction,
    normalize_action,
)


class TestNormalizeAction:
    """Tests for normalize_action()."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("BUY - Safe haven demand", TradeAction.BUY),
            ("strong sell into resistance", TradeAction.SELL),
            ("Hold for now", TradeAction.HOLD),
            ("WAIT - Risk-off", TradeAction.WAIT),
            ("No clear edge", None),
        ],
    )
    def test_substring_match(self, text: str, expected: TradeAction | None) -> None:
        assert normalize_action(text) == expected

    def test_buy_checked_before_sell(self) -> None:
        assert normalize_action("Buy dips, sell rallies") == TradeAction.BUY


class TestAnalysisRequest:
    """Tests for AnalysisRequest validation and the comparative flag."""

    def test_defaults(self) -> None:
        request = AnalysisRequest(query="Outlook?", symbol="EURUSD")
        assert request.provider_preference is ProviderPreference.AUTO
        assert request.comparative is False

    def test_compare_flag(self) -> None:
        assert AnalysisRequest(query="q", symbol="EURUSD", compare=True).comparative

    def test_both_preference_is_comparative(self) -> None:
        request = AnalysisRequest(
            query="q",
            symbol="EURUSD",
            provider_preference=ProviderPreference.BOTH,
        )
        assert request.comparative

    def test_unknown_preference_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            AnalysisRequest.model_validate(
                {"query": "q", "symbol": "EURUSD", "provider_preference": "gpt"}
            )

    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    def test_blank_query_rejected(self, query: str) -> None:
        with pytest.raises(pydantic.ValidationError, match="must not be empty"):
            AnalysisRequest(query=query, symbol="EURUSD")

    def test_query_kept_verbatim(self) -> None:
        assert AnalysisRequest(query="  Buy?  ", symbol="EURUSD").query == "  Buy?  "


class TestRemoteAnalysisPayload:
    """Tests for the remote model output schema."""

    def test_all_fields_default(self) -> None:
        payload = RemoteAnalysisPayload()
        assert payload.confidence == 5  # noqa: PLR2004
        assert payload.key_levels is None
        assert payload.error is None

    def test_confidence_bounds(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            RemoteAnalysisPayload(confidence=11)
        with pytest.raises(pydantic.ValidationError):
            RemoteAnalysisPayload(confidence=0)

    def test_parses_nested_levels(self) -> None:
        payload = RemoteAnalysisPayload.model_validate(
            {
                "recommendation": "BUY",
                "key_levels": {"support": 1.08, "resistance": 1.09, "entry": 1.085},
                "risk_management": {
                    "stop_loss": 1.078,
                    "take_profit": 1.1,
                    "risk_reward": "1:2.5",
                },
            }
        )
        assert payload.key_levels is not None
        assert payload.key_levels.entry == pytest.approx(1.085)


class TestAnalysisResult:
    """Tests for AnalysisResult."""

    def test_action_is_computed(self, sample_result: AnalysisResult) -> None:
        assert sample_result.action is TradeAction.BUY
        assert sample_result.model_dump()["action"] == "BUY"

    def test_fallback_defaults_false(self, sample_result: AnalysisResult) -> None:
        assert sample_result.fallback_used is False

    def test_confidence_out_of_range(self, sample_result: AnalysisResult) -> None:
        data = sample_result.model_dump(exclude={"action"})
        data["confidence"] = 12
        with pytest.raises(pydantic.ValidationError):
            AnalysisResult.model_validate(data)


class TestComparativeResult:
    """Tests for ComparativeResult consistency and source id."""

    def test_compared_result(self, result_factory: Callable[..., AnalysisResult]) -> None:
        result = ComparativeResult(
            primary=result_factory(BackendId.CLAUDE),
            secondary=result_factory(BackendId.DEEPSEEK),
            agreement_score=90,
            recommendations_agree=True,
            confidence_delta=0,
            summary_text="High consensus: both analyses recommend the same action.",
        )
        assert result.compared is True
        assert result.source_backend_id == "claude+deepseek"

    def test_single_result_uses_primary_id(
        self,
        result_factory: Callable[..., AnalysisResult],
    ) -> None:
        result = ComparativeResult(primary=result_factory(BackendId.DEEPSEEK), fallback_used=True)
        assert result.compared is False
        assert result.source_backend_id == "deepseek"

    def test_partial_comparison_rejected(
        self,
        result_factory: Callable[..., AnalysisResult],
    ) -> None:
        with pytest.raises(pydantic.ValidationError, match="all present or all absent"):
            ComparativeResult(
                primary=result_factory(BackendId.CLAUDE),
                secondary=result_factory(BackendId.DEEPSEEK),
                agreement_score=80,
            )
