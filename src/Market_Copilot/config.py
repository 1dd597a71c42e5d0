"""Application settings read once from the environment.

The entry point calls ``load_settings()`` and passes the resulting frozen
``Settings`` to ``build_market_copilot``. Nothing else in the package reads
environment variables for configuration.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from Market_Copilot.agents.model_config import (
    DEFAULT_CLAUDE_MODEL,
    DEFAULT_DEEPSEEK_BASE_URL,
    DEFAULT_DEEPSEEK_MODEL,
)
from Market_Copilot.models.enums import BarInterval
from Market_Copilot.utils.exceptions import InvalidRequestError

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


class Settings(BaseModel):
    """Credentials, endpoints, defaults, and timeouts for one process."""

    model_config = ConfigDict(frozen=True)

    finnhub_api_key: str | None = None
    alpha_vantage_api_key: str = "demo"
    anthropic_api_key: str | None = None
    deepseek_api_key: str | None = None

    claude_model: str = DEFAULT_CLAUDE_MODEL
    deepseek_model: str = DEFAULT_DEEPSEEK_MODEL
    deepseek_base_url: str = DEFAULT_DEEPSEEK_BASE_URL

    default_interval: BarInterval = BarInterval.H1
    default_lookback: int = Field(default=50, ge=1, le=1000)

    provider_timeout_seconds: float = Field(default=5.0, gt=0)
    analysis_timeout_seconds: float = Field(default=60.0, gt=0)

    enable_yahoo_bars: bool = False
    synthetic_seed: int | None = None


# Environment variable -> Settings field
_ENV_FIELDS: Final[dict[str, str]] = {
    "FINNHUB_API_KEY": "finnhub_api_key",
    "ALPHA_VANTAGE_API_KEY": "alpha_vantage_api_key",
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "DEEPSEEK_API_KEY": "deepseek_api_key",
    "CLAUDE_MODEL": "claude_model",
    "DEEPSEEK_MODEL": "deepseek_model",
    "DEEPSEEK_BASE_URL": "deepseek_base_url",
    "DEFAULT_INTERVAL": "default_interval",
    "DEFAULT_LOOKBACK": "default_lookback",
    "PROVIDER_TIMEOUT_SECONDS": "provider_timeout_seconds",
    "ANALYSIS_TIMEOUT_SECONDS": "analysis_timeout_seconds",
    "ENABLE_YAHOO_BARS": "enable_yahoo_bars",
    "SYNTHETIC_SEED": "synthetic_seed",
}


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from *environ* (``os.environ`` by default).

    Blank values are treated as unset.

    Raises:
        InvalidRequestError: If a value cannot be parsed (e.g. a non-numeric timeout).
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}
    for env_key, field in _ENV_FIELDS.items():
        raw = env.get(env_key)
        if raw is None or not raw.strip():
            continue
        raw = raw.strip()
        if field == "enable_yahoo_bars":
            values[field] = raw.lower() in _TRUE_VALUES
        else:
            values[field] = raw

    try:
        return Settings.model_validate(values)
    except pydantic.ValidationError as exc:
        msg = f"Invalid configuration: {exc}"
        raise InvalidRequestError(msg) from exc
