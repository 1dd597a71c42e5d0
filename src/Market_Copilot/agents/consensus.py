"""Consensus scoring between two analysis results.

Score components (0-100):

* +50 when both recommendations normalize to the same action,
* +25 when confidences differ by at most 2, and a further +15 when by at most 1,
* +10 when entry levels differ by less than 0.01.
"""

from __future__ import annotations

from typing import NamedTuple

from Market_Copilot.models import AnalysisResult, normalize_action

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ACTION_MATCH_POINTS: int = 50
CONFIDENCE_CLOSE_POINTS: int = 25
CONFIDENCE_VERY_CLOSE_POINTS: int = 15
ENTRY_MATCH_POINTS: int = 10

CONFIDENCE_CLOSE_DELTA: int = 2
CONFIDENCE_VERY_CLOSE_DELTA: int = 1
ENTRY_MATCH_TOLERANCE: float = 0.01

HIGH_CONSENSUS: int = 80
MODERATE_CONSENSUS: int = 60
PARTIAL_CONSENSUS: int = 40


class Consensus(NamedTuple):
    """Outcome of comparing two analyses."""

    agreement_score: int
    recommendations_agree: bool
    confidence_delta: int
    summary_text: str


def summarize(score: int) -> str:
    """Map an agreement score to its summary bucket."""
    if score >= HIGH_CONSENSUS:
        return "High consensus: both analyses agree on direction and conviction."
    if score >= MODERATE_CONSENSUS:
        return "Moderate consensus: direction agrees with some differences in detail."
    if score >= PARTIAL_CONSENSUS:
        return "Partial consensus: analyses diverge on key points."
    return "Low consensus: recommend further analysis."


def compare_analyses(first: AnalysisResult, second: AnalysisResult) -> Consensus:
    """Score the agreement between *first* and *second*."""
    first_action = normalize_action(first.recommendation)
    second_action = normalize_action(second.recommendation)
    agree = first_action is not None and first_action == second_action
    delta = abs(first.confidence - second.confidence)

    score = 0
    if agree:
        score += ACTION_MATCH_POINTS
    if delta <= CONFIDENCE_CLOSE_DELTA:
        score += CONFIDENCE_CLOSE_POINTS
        if delta <= CONFIDENCE_VERY_CLOSE_DELTA:
            score += CONFIDENCE_VERY_CLOSE_POINTS
    if abs(first.entry_level - second.entry_level) < ENTRY_MATCH_TOLERANCE:
        score += ENTRY_MATCH_POINTS

    return Consensus(
        agreement_score=score,
        recommendations_agree=agree,
        confidence_delta=delta,
        summary_text=summarize(score),
    )
