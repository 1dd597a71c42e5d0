"""StrEnum types for the market-analysis domain.

All enums use StrEnum. Use enum members in business logic, never raw strings.
"""

from enum import StrEnum


class Instrument(StrEnum):
    """Tradable instruments supported by the system."""

    EURUSD = "EURUSD"
    GBPUSD = "GBPUSD"
    USDJPY = "USDJPY"
    XAUUSD = "XAUUSD"
    SPX500 = "SPX500"
    NAS100 = "NAS100"
    GER40 = "GER40"


class InstrumentCategory(StrEnum):
    """Category that drives local heuristic branching."""

    PRECIOUS_METAL = "precious_metal"
    USD_CROSS = "usd_cross"
    EQUITY_INDEX = "equity_index"
    OTHER = "other"


class TradeAction(StrEnum):
    """Normalized action extracted from a free-text recommendation."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    WAIT = "WAIT"


class BackendId(StrEnum):
    """Identifier of an analysis backend."""

    CLAUDE = "claude"
    DEEPSEEK = "deepseek"
    LOCAL = "local"


class ProviderPreference(StrEnum):
    """Caller preference for which analysis backend answers first."""

    CLAUDE = "claude"
    DEEPSEEK = "deepseek"
    LOCAL = "local"
    AUTO = "auto"
    BOTH = "both"


class MacdSignalMode(StrEnum):
    """How the MACD signal line is derived."""

    RATIO = "ratio"
    EMA = "ema"


class BarInterval(StrEnum):
    """Supported bar intervals."""

    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1H"
    H4 = "4H"
    D1 = "1D"
