"""Data acquisition, caching, and rate limiting services.

Re-exports all public service classes so consumers can import directly:
    from Market_Copilot.services import QuoteService, BarSeriesStore
"""

from Market_Copilot.services.bars import (
    BarSeriesStore,
    BarSource,
    SyntheticBarSource,
    YahooBarSource,
)
from Market_Copilot.services.cache import CacheEntry, TTLCache
from Market_Copilot.services.health import HealthService
from Market_Copilot.services.quote_providers import (
    AlphaVantageProvider,
    FinnhubProvider,
    MetalsLiveProvider,
    QuoteProvider,
    YahooFinanceProvider,
)
from Market_Copilot.services.quotes import QuoteService
from Market_Copilot.services.rate_limiter import RateLimiter
from Market_Copilot.services.synthetic import SyntheticQuoteGenerator

__all__ = [
    # Infrastructure
    "CacheEntry",
    "RateLimiter",
    "TTLCache",
    # Quote providers
    "AlphaVantageProvider",
    "FinnhubProvider",
    "MetalsLiveProvider",
    "QuoteProvider",
    "SyntheticQuoteGenerator",
    "YahooFinanceProvider",
    # Services
    "BarSeriesStore",
    "BarSource",
    "HealthService",
    "QuoteService",
    "SyntheticBarSource",
    "YahooBarSource",
]
