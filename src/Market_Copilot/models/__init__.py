"""Pydantic v2 models, enums, and type definitions.

Re-exports all public models so consumers can import directly:
    from Market_Copilot.models import Quote, Instrument, AnalysisResult
"""

from Market_Copilot.models.analysis import (
    AnalysisContext,
    AnalysisRequest,
    AnalysisResult,
    ComparativeResult,
    KeyLevels,
    RemoteAnalysisPayload,
    RiskManagement,
    normalize_action,
)
from Market_Copilot.models.enums import (
    BackendId,
    BarInterval,
    Instrument,
    InstrumentCategory,
    MacdSignalMode,
    ProviderPreference,
    TradeAction,
)
from Market_Copilot.models.health import HealthStatus
from Market_Copilot.models.indicators import (
    BollingerBands,
    FibonacciLevels,
    IndicatorSnapshot,
    MacdValues,
)
from Market_Copilot.models.instruments import (
    DEFAULT_PROFILES,
    InstrumentProfile,
    get_profile,
    resolve_instrument,
)
from Market_Copilot.models.market_data import Bar, BarSeries, Quote

__all__ = [
    # Enums
    "BackendId",
    "BarInterval",
    "Instrument",
    "InstrumentCategory",
    "MacdSignalMode",
    "ProviderPreference",
    "TradeAction",
    # Instruments
    "DEFAULT_PROFILES",
    "InstrumentProfile",
    "get_profile",
    "resolve_instrument",
    # Market data
    "Bar",
    "BarSeries",
    "Quote",
    # Indicators
    "BollingerBands",
    "FibonacciLevels",
    "IndicatorSnapshot",
    "MacdValues",
    # Analysis
    "AnalysisContext",
    "AnalysisRequest",
    "AnalysisResult",
    "ComparativeResult",
    "KeyLevels",
    "RemoteAnalysisPayload",
    "RiskManagement",
    "normalize_action",
    # Health
    "HealthStatus",
]
