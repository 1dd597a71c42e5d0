"""Synthetic quote generator: the last-resort member of every quote chain.

Produces a plausible quote by perturbing the last known price of an
instrument by a random amount scaled to its volatility. It never fails and
never touches the network. Randomness comes from an injectable
``random.Random`` so a fixed seed reproduces the same sequence.
"""

from __future__ import annotations

import datetime
import logging
import random
from collections.abc import Mapping
from typing import Final

from Market_Copilot.models.enums import Instrument
from Market_Copilot.models.instruments import DEFAULT_PROFILES, InstrumentProfile
from Market_Copilot.models.market_data import Quote

logger = logging.getLogger(__name__)

SYNTHETIC_SOURCE: Final[str] = "synthetic"

# Volume is drawn from [0.8, 1.2] times the instrument's typical volume.
VOLUME_JITTER_LOW: Final[float] = 0.8
VOLUME_JITTER_SPAN: Final[float] = 0.4


class SyntheticQuoteGenerator:
    """Generate fallback quotes around each instrument's last known price.

    Usage::

        generator = SyntheticQuoteGenerator(rng=random.Random(42))
        generator.observe(real_quote)        # track the latest real price
        quote = generator.generate(Instrument.EURUSD)
    """

    def __init__(
        self,
        profiles: Mapping[Instrument, InstrumentProfile] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        # Injected profiles override the defaults; missing instruments keep theirs
        self._profiles = {**DEFAULT_PROFILES, **(profiles or {})}
        self._rng = rng if rng is not None else random.Random()  # noqa: S311
        self._baselines: dict[Instrument, float] = {
            symbol: profile.baseline_price for symbol, profile in self._profiles.items()
        }

    @property
    def rng(self) -> random.Random:
        """The random source shared with the synthetic bar generator."""
        return self._rng

    def profile(self, symbol: Instrument) -> InstrumentProfile:
        """Return the profile used for *symbol*."""
        return self._profiles[symbol]

    def baseline(self, symbol: Instrument) -> float:
        """Last known real price for *symbol*, or its configured baseline."""
        return self._baselines[symbol]

    def observe(self, quote: Quote) -> None:
        """Adopt the price of a real provider quote as the new baseline."""
        if quote.source == SYNTHETIC_SOURCE:
            return
        self._baselines[quote.symbol] = quote.price
        logger.debug("Synthetic baseline for %s set to %s", quote.symbol, quote.price)

    def generate(self, symbol: Instrument) -> Quote:
        """Return a synthetic quote for *symbol*.

        The price moves at most ``volatility_pct`` percent from the baseline,
        and the day's high and low sit at most ``volatility_pct / 2`` percent
        away from the price.
        """
        profile = self._profiles[symbol]
        baseline = self._baselines[symbol]
        volatility = profile.volatility_pct / 100.0

        variation = self._rng.uniform(-1.0, 1.0) * volatility
        price = baseline * (1.0 + variation)
        change = price - baseline
        change_percent = change / baseline * 100.0
        high = price * (1.0 + self._rng.random() * volatility / 2.0)
        low = price * (1.0 - self._rng.random() * volatility / 2.0)
        volume = int(
            profile.typical_volume
            * (VOLUME_JITTER_LOW + self._rng.random() * VOLUME_JITTER_SPAN)
        )

        return Quote(
            symbol=symbol,
            price=price,
            change=change,
            change_percent=change_percent,
            volume=volume,
            high_24h=high,
            low_24h=low,
            captured_at=datetime.datetime.now(datetime.UTC),
            source=SYNTHETIC_SOURCE,
        )
