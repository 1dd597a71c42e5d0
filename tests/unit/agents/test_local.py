"""Tests for the deterministic local heuristic backend.

Covers category branching, confidence from corroborating signals,
arithmetic risk levels, and the always-succeeds contract.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from Market_Copilot.agents.local import (
    BASE_CONFIDENCE,
    MAX_CONFIDENCE,
    MEDIUM_HORIZON,
    RISK_REWARD_RATIO,
    SHORT_HORIZON,
    LocalHeuristicBackend,
    build_local_analysis,
)
from Market_Copilot.models import (
    AnalysisContext,
    BackendId,
    IndicatorSnapshot,
    Instrument,
    MacdValues,
    Quote,
    TradeAction,
)


def _context(
    quote: Quote,
    indicators: IndicatorSnapshot | None = None,
) -> AnalysisContext:
    return AnalysisContext(
        query="What now?",
        instrument=quote.symbol,
        quote=quote,
        indicators=indicators,
    )


class TestCategoryBranching:
    """Action selection per instrument category."""

    @pytest.mark.parametrize(
        ("change_percent", "expected"),
        [(0.5, TradeAction.BUY), (-0.5, TradeAction.SELL), (0.1, TradeAction.HOLD)],
    )
    def test_precious_metal(
        self,
        change_percent: float,
        expected: TradeAction,
        quote_factory: Callable[..., Quote],
    ) -> None:
        quote = quote_factory(Instrument.XAUUSD, 2348.5, change_percent=change_percent)
        assert build_local_analysis(_context(quote)).action is expected

    @pytest.mark.parametrize(
        ("change_percent", "expected"),
        [(0.25, TradeAction.BUY), (-0.25, TradeAction.SELL), (0.12, TradeAction.HOLD)],
    )
    def test_usd_cross(
        self,
        change_percent: float,
        expected: TradeAction,
        quote_factory: Callable[..., Quote],
    ) -> None:
        quote = quote_factory(Instrument.GBPUSD, 1.2630, change_percent=change_percent)
        assert build_local_analysis(_context(quote)).action is expected

    @pytest.mark.parametrize(
        ("change_percent", "expected"),
        [(0.4, TradeAction.BUY), (-0.4, TradeAction.WAIT), (0.0, TradeAction.HOLD)],
    )
    def test_equity_index(
        self,
        change_percent: float,
        expected: TradeAction,
        quote_factory: Callable[..., Quote],
    ) -> None:
        quote = quote_factory(Instrument.SPX500, 4780.25, change_percent=change_percent)
        assert build_local_analysis(_context(quote)).action is expected


class TestConfidence:
    """Confidence is 5 plus agreeing signals, capped at 8."""

    def test_no_indicators_is_base(self, sample_quote: Quote) -> None:
        result = build_local_analysis(_context(sample_quote))
        assert result.confidence == BASE_CONFIDENCE
        assert "Indicators unavailable" in result.technical_summary

    def test_two_bullish_signals(self, sample_context: AnalysisContext) -> None:
        """MACD histogram positive and price above VWAP; RSI 58.4 is neutral."""
        result = build_local_analysis(sample_context)
        assert result.confidence == BASE_CONFIDENCE + 2

    def test_capped_at_max(
        self,
        sample_quote: Quote,
        sample_indicators: IndicatorSnapshot,
    ) -> None:
        oversold = sample_indicators.model_copy(update={"rsi": 25.0})
        result = build_local_analysis(_context(sample_quote, oversold))
        assert result.confidence == MAX_CONFIDENCE

    def test_bearish_signals_count_for_sell(
        self,
        sample_indicators: IndicatorSnapshot,
        quote_factory: Callable[..., Quote],
    ) -> None:
        quote = quote_factory(Instrument.EURUSD, 1.0800, change_percent=-0.3)
        bearish = sample_indicators.model_copy(
            update={
                "rsi": 75.0,
                "macd": MacdValues(macd=-0.001, signal=-0.0009, histogram=-0.0001),
            }
        )
        result = build_local_analysis(_context(quote, bearish))
        assert result.action is TradeAction.SELL
        assert result.confidence == MAX_CONFIDENCE

    @pytest.mark.parametrize("change_percent", [-3.0, -0.3, 0.0, 0.3, 3.0])
    def test_always_in_range(
        self,
        change_percent: float,
        sample_indicators: IndicatorSnapshot,
        quote_factory: Callable[..., Quote],
    ) -> None:
        quote = quote_factory(Instrument.EURUSD, 1.0850, change_percent=change_percent)
        result = build_local_analysis(_context(quote, sample_indicators))
        assert BASE_CONFIDENCE <= result.confidence <= MAX_CONFIDENCE


class TestRiskLevels:
    """Levels derived arithmetically from the current price."""

    def test_buy_levels(self, quote_factory: Callable[..., Quote]) -> None:
        quote = quote_factory(Instrument.XAUUSD, 2000.0, change_percent=0.6)
        result = build_local_analysis(_context(quote))

        assert result.support_level == pytest.approx(1990.0)
        assert result.resistance_level == pytest.approx(2010.0)
        assert result.entry_level == pytest.approx(2002.0)
        assert result.stop_loss < result.entry_level < result.take_profit
        assert result.risk_reward_ratio == RISK_REWARD_RATIO

    def test_sell_levels_inverted(self, quote_factory: Callable[..., Quote]) -> None:
        quote = quote_factory(Instrument.XAUUSD, 2000.0, change_percent=-0.6)
        result = build_local_analysis(_context(quote))

        assert result.entry_level == pytest.approx(1998.0)
        assert result.take_profit < result.entry_level < result.stop_loss

    def test_wait_follows_recent_move(self, quote_factory: Callable[..., Quote]) -> None:
        quote = quote_factory(Instrument.NAS100, 16800.0, change_percent=-0.8)
        result = build_local_analysis(_context(quote))

        assert result.action is TradeAction.WAIT
        assert result.take_profit < result.entry_level < result.stop_loss

    def test_horizon_by_move_size(self, quote_factory: Callable[..., Quote]) -> None:
        strong = quote_factory(Instrument.XAUUSD, 2000.0, change_percent=0.9)
        mild = quote_factory(Instrument.XAUUSD, 2000.0, change_percent=0.4)
        assert build_local_analysis(_context(strong)).recommended_horizon == SHORT_HORIZON
        assert build_local_analysis(_context(mild)).recommended_horizon == MEDIUM_HORIZON


class TestLocalHeuristicBackend:
    """Tests for the AnalysisBackend wrapper."""

    @pytest.mark.asyncio()
    async def test_analyze(self, sample_context: AnalysisContext) -> None:
        backend = LocalHeuristicBackend()
        result = await backend.analyze(sample_context)
        assert result.source_backend_id is BackendId.LOCAL
        assert result.fallback_used is False
        assert result.catalysts

    @pytest.mark.asyncio()
    async def test_always_connected(self) -> None:
        backend = LocalHeuristicBackend()
        assert await backend.test_connection() is True
        assert backend.describe() == {"id": "local", "remote": False}

    def test_deterministic(self, sample_context: AnalysisContext) -> None:
        assert build_local_analysis(sample_context) == build_local_analysis(sample_context)
