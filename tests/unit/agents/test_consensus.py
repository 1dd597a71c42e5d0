"""Tests for consensus scoring between two analysis results."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from Market_Copilot.agents.consensus import compare_analyses, summarize
from Market_Copilot.models import AnalysisResult, BackendId

ResultFactory = Callable[..., AnalysisResult]


class TestCompareAnalyses:
    """Tests for compare_analyses()."""

    def test_full_agreement(self, result_factory: ResultFactory) -> None:
        first = result_factory(BackendId.CLAUDE)
        second = result_factory(BackendId.DEEPSEEK, recommendation="Strong buy on dips")

        consensus = compare_analyses(first, second)

        assert consensus.agreement_score == 100  # noqa: PLR2004
        assert consensus.recommendations_agree is True
        assert consensus.confidence_delta == 0
        assert consensus.summary_text.startswith("High consensus")

    def test_opposite_actions(self, result_factory: ResultFactory) -> None:
        first = result_factory(BackendId.CLAUDE, confidence=7)
        second = result_factory(
            BackendId.DEEPSEEK,
            recommendation="SELL - Breakdown",
            confidence=5,
            entry=1.0850,
        )

        consensus = compare_analyses(first, second)

        assert consensus.recommendations_agree is False
        assert consensus.confidence_delta == 2  # noqa: PLR2004
        assert consensus.agreement_score == 25 + 10  # noqa: PLR2004
        assert consensus.summary_text.startswith("Low consensus")

    def test_same_action_distant_confidence_and_entry(self, result_factory: ResultFactory) -> None:
        first = result_factory(BackendId.CLAUDE, confidence=9, entry=2350.0)
        second = result_factory(BackendId.DEEPSEEK, confidence=4, entry=2340.0)

        consensus = compare_analyses(first, second)

        assert consensus.agreement_score == 50  # noqa: PLR2004
        assert consensus.summary_text.startswith("Partial consensus")

    def test_confidence_within_two(self, result_factory: ResultFactory) -> None:
        first = result_factory(BackendId.CLAUDE, confidence=6, entry=2350.0)
        second = result_factory(BackendId.DEEPSEEK, confidence=8, entry=2350.5)

        assert compare_analyses(first, second).agreement_score == 75  # noqa: PLR2004

    def test_unrecognized_actions_never_agree(self, result_factory: ResultFactory) -> None:
        first = result_factory(BackendId.CLAUDE, recommendation="Unclear")
        second = result_factory(BackendId.DEEPSEEK, recommendation="Unclear")

        consensus = compare_analyses(first, second)

        assert consensus.recommendations_agree is False
        assert consensus.agreement_score == 50  # noqa: PLR2004

    def test_score_bounded(self, result_factory: ResultFactory) -> None:
        first = result_factory(BackendId.CLAUDE, confidence=1, entry=1.0)
        second = result_factory(
            BackendId.DEEPSEEK, recommendation="WAIT", confidence=10, entry=100.0
        )
        assert compare_analyses(first, second).agreement_score == 0


class TestSummarize:
    """Tests for the score buckets."""

    @pytest.mark.parametrize(
        ("score", "prefix"),
        [
            (100, "High"),
            (80, "High"),
            (79, "Moderate"),
            (60, "Moderate"),
            (59, "Partial"),
            (40, "Partial"),
            (39, "Low"),
            (0, "Low"),
        ],
    )
    def test_buckets(self, score: int, prefix: str) -> None:
        assert summarize(score).startswith(prefix)
