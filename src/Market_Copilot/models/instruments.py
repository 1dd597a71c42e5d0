"""Instrument profiles: category, reference price, volatility, and display precision.

The baseline prices, volatilities, and volumes below are sample values used
to seed the synthetic generators. They are replaceable: pass a custom
profile mapping to the services that consume them.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from Market_Copilot.models.enums import Instrument, InstrumentCategory
from Market_Copilot.utils.exceptions import UnknownSymbolError


class InstrumentProfile(BaseModel):
    """Static characteristics of one instrument.

    ``volatility_pct`` is a typical percentage move used to scale synthetic
    random walks. ``price_decimals`` is only consulted when rounding for display.
    """

    model_config = ConfigDict(frozen=True)

    instrument: Instrument
    category: InstrumentCategory
    baseline_price: float = Field(gt=0)
    volatility_pct: float = Field(gt=0, lt=100)
    typical_volume: int = Field(ge=0)
    price_decimals: int = Field(ge=0, le=8)


DEFAULT_PROFILES: Final[MappingProxyType[Instrument, InstrumentProfile]] = MappingProxyType(
    {
        Instrument.EURUSD: InstrumentProfile(
            instrument=Instrument.EURUSD,
            category=InstrumentCategory.USD_CROSS,
            baseline_price=1.0850,
            volatility_pct=0.3,
            typical_volume=150_000_000,
            price_decimals=4,
        ),
        Instrument.GBPUSD: InstrumentProfile(
            instrument=Instrument.GBPUSD,
            category=InstrumentCategory.USD_CROSS,
            baseline_price=1.2630,
            volatility_pct=0.5,
            typical_volume=80_000_000,
            price_decimals=4,
        ),
        Instrument.USDJPY: InstrumentProfile(
            instrument=Instrument.USDJPY,
            category=InstrumentCategory.USD_CROSS,
            baseline_price=150.20,
            volatility_pct=0.4,
            typical_volume=120_000_000,
            price_decimals=2,
        ),
        Instrument.XAUUSD: InstrumentProfile(
            instrument=Instrument.XAUUSD,
            category=InstrumentCategory.PRECIOUS_METAL,
            baseline_price=2348.50,
            volatility_pct=0.8,
            typical_volume=25_000_000,
            price_decimals=2,
        ),
        Instrument.SPX500: InstrumentProfile(
            instrument=Instrument.SPX500,
            category=InstrumentCategory.EQUITY_INDEX,
            baseline_price=4780.25,
            volatility_pct=0.6,
            typical_volume=45_000_000,
            price_decimals=2,
        ),
        Instrument.NAS100: InstrumentProfile(
            instrument=Instrument.NAS100,
            category=InstrumentCategory.EQUITY_INDEX,
            baseline_price=16950.30,
            volatility_pct=0.9,
            typical_volume=35_000_000,
            price_decimals=2,
        ),
        Instrument.GER40: InstrumentProfile(
            instrument=Instrument.GER40,
            category=InstrumentCategory.EQUITY_INDEX,
            baseline_price=17150.75,
            volatility_pct=0.7,
            typical_volume=15_000_000,
            price_decimals=2,
        ),
    }
)


def resolve_instrument(symbol: str | Instrument) -> Instrument:
    """Map caller input to an ``Instrument``, case-insensitively.

    Raises:
        UnknownSymbolError: If *symbol* is not a supported instrument.
    """
    if isinstance(symbol, Instrument):
        return symbol
    normalized = str(symbol).strip().upper()
    try:
        return Instrument(normalized)
    except ValueError:
        raise UnknownSymbolError(str(symbol)) from None


def get_profile(symbol: Instrument) -> InstrumentProfile:
    """Return the default profile for *symbol*."""
    return DEFAULT_PROFILES[symbol]
