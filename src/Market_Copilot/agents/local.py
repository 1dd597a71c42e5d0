"""Deterministic local analysis used when no remote backend answers.

Produces an ``AnalysisResult`` from the quote and indicator values alone,
without any network call. Every branch returns a result, so the analysis
chain always has a backend that cannot fail.
"""

from __future__ import annotations

import logging

from Market_Copilot.agents.base import AnalysisBackend
from Market_Copilot.models import (
    AnalysisContext,
    AnalysisResult,
    BackendId,
    IndicatorSnapshot,
    InstrumentCategory,
    TradeAction,
    get_profile,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PRECIOUS_METAL_THRESHOLD: float = 0.3
_USD_CROSS_THRESHOLD: float = 0.2
_EQUITY_INDEX_THRESHOLD: float = 0.3
_STRONG_MOVE_THRESHOLD: float = 0.5

_RSI_OVERSOLD: float = 30.0
_RSI_OVERBOUGHT: float = 70.0

BASE_CONFIDENCE: int = 5
MAX_CONFIDENCE: int = 8

_LEVEL_BAND: float = 0.005
_ENTRY_OFFSET: float = 0.001
_STOP_LOSS_PCT: float = 0.008
_TAKE_PROFIT_PCT: float = 0.02
RISK_REWARD_RATIO: str = "1:2.5"

SHORT_HORIZON: str = "Short term (1-2 days)"
MEDIUM_HORIZON: str = "Medium term (1-2 weeks)"

_CATALYSTS: dict[InstrumentCategory, list[str]] = {
    InstrumentCategory.PRECIOUS_METAL: [
        "US real yields and Federal Reserve guidance",
        "US dollar strength",
        "Geopolitical risk and safe-haven flows",
    ],
    InstrumentCategory.USD_CROSS: [
        "Central bank rate differentials",
        "US macro releases (CPI, payrolls)",
        "Risk sentiment shifts",
    ],
    InstrumentCategory.EQUITY_INDEX: [
        "Earnings season results",
        "Bond yields and rate expectations",
        "Broad risk appetite",
    ],
    InstrumentCategory.OTHER: ["Macro headlines"],
}


def _clamp(value: int, low: int, high: int) -> int:
    """Clamp *value* to the inclusive range [low, high]."""
    return max(low, min(value, high))


def _decide(
    category: InstrumentCategory,
    change_percent: float,
) -> tuple[TradeAction, str]:
    """Return the action and a short qualifier for the recent move."""
    match category:
        case InstrumentCategory.PRECIOUS_METAL:
            if change_percent > _PRECIOUS_METAL_THRESHOLD:
                return TradeAction.BUY, "Safe haven demand"
            if change_percent < -_PRECIOUS_METAL_THRESHOLD:
                return TradeAction.SELL, "Risk-on sentiment"
            return TradeAction.HOLD, "Consolidation"
        case InstrumentCategory.USD_CROSS:
            if change_percent > _USD_CROSS_THRESHOLD:
                return TradeAction.BUY, "Base currency strength"
            if change_percent < -_USD_CROSS_THRESHOLD:
                return TradeAction.SELL, "Base currency weakness"
            return TradeAction.HOLD, "Range bound"
        case InstrumentCategory.EQUITY_INDEX:
            if change_percent > _EQUITY_INDEX_THRESHOLD:
                return TradeAction.BUY, "Risk appetite"
            if change_percent < -_EQUITY_INDEX_THRESHOLD:
                return TradeAction.WAIT, "Risk-off"
            return TradeAction.HOLD, "Neutral"
        case _:
            return TradeAction.HOLD, "No directional edge"


def _signal_votes(price: float, indicators: IndicatorSnapshot | None) -> tuple[int, int]:
    """Count ``(bullish, bearish)`` indicator signals."""
    if indicators is None:
        return 0, 0

    bullish = 0
    bearish = 0
    if indicators.macd.histogram > 0:
        bullish += 1
    elif indicators.macd.histogram < 0:
        bearish += 1
    if indicators.vwap > 0:
        if price > indicators.vwap:
            bullish += 1
        elif price < indicators.vwap:
            bearish += 1
    if indicators.rsi < _RSI_OVERSOLD:
        bullish += 1
    elif indicators.rsi > _RSI_OVERBOUGHT:
        bearish += 1
    return bullish, bearish


def _technical_summary(indicators: IndicatorSnapshot | None, decimals: int) -> str:
    if indicators is None:
        return "Indicators unavailable; analysis based on price action only."
    macd_state = "bullish" if indicators.macd.histogram > 0 else "bearish"
    return (
        f"RSI {indicators.rsi:.1f}, MACD histogram {indicators.macd.histogram:+.{decimals + 2}f} "
        f"({macd_state}), VWAP {indicators.vwap:.{decimals}f}, Bollinger "
        f"{indicators.bollinger.lower:.{decimals}f}-{indicators.bollinger.upper:.{decimals}f}."
    )


def build_local_analysis(context: AnalysisContext) -> AnalysisResult:
    """Rule-based analysis of the snapshot in *context*.

    Confidence is 5 plus the number of indicator signals that agree with the
    action (or with the recent move for HOLD and WAIT), capped at 8.
    """
    profile = get_profile(context.instrument)
    decimals = profile.price_decimals
    quote = context.quote
    price = quote.price
    change_percent = quote.change_percent

    action, qualifier = _decide(profile.category, change_percent)

    move_direction = 1 if change_percent >= 0 else -1
    match action:
        case TradeAction.BUY:
            direction = 1
        case TradeAction.SELL:
            direction = -1
        case _:
            direction = move_direction

    bullish, bearish = _signal_votes(price, context.indicators)
    agreeing = bullish if direction > 0 else bearish
    confidence = _clamp(BASE_CONFIDENCE + agreeing, BASE_CONFIDENCE, MAX_CONFIDENCE)

    entry = price * (1 + move_direction * _ENTRY_OFFSET)
    stop_loss = entry * (1 - direction * _STOP_LOSS_PCT)
    take_profit = entry * (1 + direction * _TAKE_PROFIT_PCT)

    horizon = SHORT_HORIZON if abs(change_percent) > _STRONG_MOVE_THRESHOLD else MEDIUM_HORIZON
    narrative = (
        f"{context.instrument} trades at {price:.{decimals}f} "
        f"({change_percent:+.2f}% on the session). {qualifier} points to "
        f"{action.value}; {agreeing} of 3 indicator signals agree."
    )

    logger.debug(
        "Local analysis for %s: action=%s confidence=%d",
        context.instrument,
        action,
        confidence,
    )

    return AnalysisResult(
        narrative_text=narrative,
        recommendation=f"{action.value} - {qualifier}",
        confidence=confidence,
        support_level=price * (1 - _LEVEL_BAND),
        resistance_level=price * (1 + _LEVEL_BAND),
        entry_level=entry,
        stop_loss=stop_loss,
        take_profit=take_profit,
        risk_reward_ratio=RISK_REWARD_RATIO,
        technical_summary=_technical_summary(context.indicators, decimals),
        catalysts=list(_CATALYSTS[profile.category]),
        recommended_horizon=horizon,
        source_backend_id=BackendId.LOCAL,
    )


class LocalHeuristicBackend(AnalysisBackend):
    """``AnalysisBackend`` wrapper around ``build_local_analysis``."""

    backend_id = BackendId.LOCAL
    is_remote = False

    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        return build_local_analysis(context)

    async def test_connection(self) -> bool:
        return True
