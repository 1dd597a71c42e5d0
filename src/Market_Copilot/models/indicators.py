"""Indicator snapshot models derived from a single bar series."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from Market_Copilot.models.enums import Instrument


class MacdValues(BaseModel):
    """MACD line, signal line, and histogram (``macd - signal``)."""

    model_config = ConfigDict(frozen=True)

    macd: float
    signal: float
    histogram: float


class BollingerBands(BaseModel):
    """Bollinger bands around a simple moving average."""

    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float


class FibonacciLevels(BaseModel):
    """Retracement levels measured down from the highest close."""

    model_config = ConfigDict(frozen=True)

    level_618: float
    level_50: float
    level_382: float


class IndicatorSnapshot(BaseModel):
    """All indicators computed from one bar series, in full precision.

    Frozen: a snapshot is a pure function of its input series.
    """

    model_config = ConfigDict(frozen=True)

    symbol: Instrument
    interval: str
    rsi: float = Field(ge=0.0, le=100.0)
    macd: MacdValues
    vwap: float
    bollinger: BollingerBands
    fibonacci: FibonacciLevels

    def rounded(self, decimals: int) -> IndicatorSnapshot:
        """Return a copy rounded for display; RSI is always shown to 2 places."""

        def r(value: float) -> float:
            return round(value, decimals)

        return IndicatorSnapshot(
            symbol=self.symbol,
            interval=self.interval,
            rsi=round(self.rsi, 2),
            macd=MacdValues(
                macd=r(self.macd.macd),
                signal=r(self.macd.signal),
                histogram=r(self.macd.histogram),
            ),
            vwap=r(self.vwap),
            bollinger=BollingerBands(
                upper=r(self.bollinger.upper),
                middle=r(self.bollinger.middle),
                lower=r(self.bollinger.lower),
            ),
            fibonacci=FibonacciLevels(
                level_618=r(self.fibonacci.level_618),
                level_50=r(self.fibonacci.level_50),
                level_382=r(self.fibonacci.level_382),
            ),
        )
