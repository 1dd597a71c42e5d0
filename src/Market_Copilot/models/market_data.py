"""Market data models: quotes, OHLCV bars, and bar series.

Prices are floats. Every model is frozen: a quote or bar is a point-in-time
snapshot and is recomputed rather than mutated.
"""

from __future__ import annotations

import datetime
import math

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from Market_Copilot.models.enums import Instrument


class Quote(BaseModel):
    """Latest price snapshot for an instrument.

    A quote is only ever constructed with a positive, finite price. Providers
    that cannot satisfy this raise instead of returning a partial quote.
    """

    model_config = ConfigDict(frozen=True)

    symbol: Instrument
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    volume: int = Field(default=0, ge=0)
    high_24h: float
    low_24h: float
    captured_at: datetime.datetime
    source: str

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        """Reject NaN, infinite, zero, and negative prices."""
        if not math.isfinite(v) or v <= 0:
            msg = f"price must be finite and positive, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("change", "change_percent", "high_24h", "low_24h")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinite values."""
        if not math.isfinite(v):
            msg = f"value must be finite, got {v}"
            raise ValueError(msg)
        return v


class Bar(BaseModel):
    """A single OHLCV price bar.

    Frozen because historical price data should never be mutated after creation.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime.datetime
    open: float
    high: float
    low: float
    close: float
    volume: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_range(self) -> Bar:
        """Ensure high and low bracket both open and close."""
        if self.high < max(self.open, self.close):
            msg = f"high {self.high} is below max(open, close)"
            raise ValueError(msg)
        if self.low > min(self.open, self.close):
            msg = f"low {self.low} is above min(open, close)"
            raise ValueError(msg)
        return self


class BarSeries(BaseModel):
    """Ordered bars for one (symbol, interval) with strictly increasing timestamps."""

    model_config = ConfigDict(frozen=True)

    symbol: Instrument
    interval: str
    bars: list[Bar]

    @field_validator("bars")
    @classmethod
    def validate_ordering(cls, v: list[Bar]) -> list[Bar]:
        """Reject duplicate or out-of-order timestamps."""
        for previous, current in zip(v, v[1:], strict=False):
            if current.timestamp <= previous.timestamp:
                msg = (
                    f"bar timestamps must be strictly increasing: "
                    f"{current.timestamp.isoformat()} follows {previous.timestamp.isoformat()}"
                )
                raise ValueError(msg)
        return v

    def __len__(self) -> int:
        return len(self.bars)

    def closes(self) -> list[float]:
        """Close prices in chronological order."""
        return [bar.close for bar in self.bars]

    def to_frame(self) -> pd.DataFrame:
        """Return the series as a DataFrame indexed by timestamp."""
        frame = pd.DataFrame(
            {
                "open": [b.open for b in self.bars],
                "high": [b.high for b in self.bars],
                "low": [b.low for b in self.bars],
                "close": [b.close for b in self.bars],
                "volume": [b.volume for b in self.bars],
            },
            index=pd.DatetimeIndex([b.timestamp for b in self.bars], name="timestamp"),
        )
        return frame
