"""Analysis models: requests, backend payloads, and single or comparative results.

``RemoteAnalysisPayload`` is the structured output schema handed to remote
model agents. ``AnalysisResult`` is the normalized result every backend
produces, and ``ComparativeResult`` wraps one or two results with optional
consensus fields.
"""

import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from Market_Copilot.models.enums import BackendId, Instrument, ProviderPreference, TradeAction
from Market_Copilot.models.indicators import IndicatorSnapshot
from Market_Copilot.models.market_data import Quote

# --- Validation boundaries ---
CONFIDENCE_MIN: int = 1
CONFIDENCE_MAX: int = 10
DEFAULT_CONFIDENCE: int = 5

COMPARED_SOURCE_ID: str = "claude+deepseek"


def normalize_action(recommendation: str) -> TradeAction | None:
    """Extract the trade action from free recommendation text.

    Matching is a case-insensitive substring test in the order buy, sell,
    hold, wait, so ``"Strong BUY - breakout"`` maps to ``TradeAction.BUY``.
    """
    lowered = recommendation.lower()
    for action in (TradeAction.BUY, TradeAction.SELL, TradeAction.HOLD, TradeAction.WAIT):
        if action.value.lower() in lowered:
            return action
    return None


class AnalysisRequest(BaseModel):
    """Inbound analysis request as supplied by the caller.

    A blank query is rejected here. The symbol is resolved by the engine
    before any provider is contacted, so invalid input never costs an
    upstream call.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    symbol: str
    provider_preference: ProviderPreference = ProviderPreference.AUTO
    compare: bool = False

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "Analysis query must not be empty"
            raise ValueError(msg)
        return value

    @property
    def comparative(self) -> bool:
        """True when both remote backends should be consulted."""
        return self.compare or self.provider_preference == ProviderPreference.BOTH


class AnalysisContext(BaseModel):
    """Request-scoped market snapshot handed to every backend."""

    model_config = ConfigDict(frozen=True)

    query: str
    instrument: Instrument
    quote: Quote
    indicators: IndicatorSnapshot | None = None
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC),
    )


# ---------------------------------------------------------------------------
# Remote backend output schema
# ---------------------------------------------------------------------------


class KeyLevels(BaseModel):
    """Price levels proposed by a remote analyst."""

    support: float
    resistance: float
    entry: float


class RiskManagement(BaseModel):
    """Stop, target, and reward ratio proposed by a remote analyst."""

    stop_loss: float
    take_profit: float
    risk_reward: str


class RemoteAnalysisPayload(BaseModel):
    """Structured JSON a remote analysis model must return.

    ``error`` is set by a model that declines to analyze; every other field
    is then ignored.
    """

    analysis: str = ""
    recommendation: str = ""
    confidence: int = Field(default=DEFAULT_CONFIDENCE, ge=CONFIDENCE_MIN, le=CONFIDENCE_MAX)
    key_levels: KeyLevels | None = None
    risk_management: RiskManagement | None = None
    technical_view: str = ""
    catalysts: list[str] = Field(default_factory=list)
    timeframe: str = ""
    error: str | None = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class AnalysisResult(BaseModel):
    """A complete trade analysis from one backend.

    Frozen because a result is the final record of one backend invocation.
    """

    model_config = ConfigDict(frozen=True)

    narrative_text: str
    recommendation: str
    confidence: int = Field(ge=CONFIDENCE_MIN, le=CONFIDENCE_MAX)
    support_level: float
    resistance_level: float
    entry_level: float
    stop_loss: float
    take_profit: float
    risk_reward_ratio: str
    technical_summary: str
    catalysts: list[str]
    recommended_horizon: str
    source_backend_id: BackendId
    fallback_used: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def action(self) -> TradeAction | None:
        """Normalized action parsed from the recommendation text."""
        return normalize_action(self.recommendation)


class ComparativeResult(BaseModel):
    """Result of a comparative run over the remote backends.

    The comparison fields are populated together when two results were
    compared, and are all ``None`` otherwise.
    """

    model_config = ConfigDict(frozen=True)

    primary: AnalysisResult
    secondary: AnalysisResult | None = None
    agreement_score: int | None = None
    recommendations_agree: bool | None = None
    confidence_delta: int | None = None
    summary_text: str | None = None
    fallback_used: bool = False
    processing_time_ms: int = 0

    @model_validator(mode="after")
    def validate_comparison_fields(self) -> "ComparativeResult":
        """Comparison fields are all present with a secondary, or all absent."""
        fields = (
            self.secondary,
            self.agreement_score,
            self.recommendations_agree,
            self.confidence_delta,
            self.summary_text,
        )
        present = [value is not None for value in fields]
        if any(present) and not all(present):
            msg = "comparison fields must be all present or all absent"
            raise ValueError(msg)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def compared(self) -> bool:
        """True when two backend results were compared."""
        return self.secondary is not None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def source_backend_id(self) -> str:
        """``"claude+deepseek"`` when compared, else the primary backend id."""
        if self.secondary is not None:
            return COMPARED_SOURCE_ID
        return str(self.primary.source_backend_id)
