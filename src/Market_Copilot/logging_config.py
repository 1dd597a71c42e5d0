"""Root logger setup for the ``market-copilot`` command.

Library modules only create ``logging.getLogger(__name__)`` loggers; the CLI
calls ``configure_logging`` once per command before any work starts.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# LOG_LEVEL_<AREA> environment variable suffix -> package logger
AREA_LOGGERS: dict[str, str] = {
    "AGENTS": "Market_Copilot.agents",
    "SERVICES": "Market_Copilot.services",
    "INDICATORS": "Market_Copilot.indicators",
    "ENGINE": "Market_Copilot.engine",
    "CLI": "Market_Copilot.cli",
}

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "yfinance")


def _parse_level(name: str | None) -> int | None:
    """Numeric level for a name like ``"debug"``; None when unrecognized."""
    if not name:
        return None
    return logging.getLevelNamesMapping().get(name.strip().upper())


def _root_level(level: str, verbose: bool, quiet: bool, environ: Mapping[str, str]) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    requested = level or environ.get("LOG_LEVEL")
    parsed = _parse_level(requested)
    return parsed if parsed is not None else logging.INFO


def configure_logging(
    *,
    level: str = "",
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Replace any existing root configuration with the package format.

    Precedence for the root level: ``verbose``, then ``quiet``, then
    ``level``, then ``LOG_LEVEL``, then INFO. ``LOG_LEVEL_<AREA>`` variables
    set individual package areas; unrecognized level names are ignored.
    """
    env = os.environ if environ is None else environ
    effective = _root_level(level, verbose, quiet, env)
    logging.basicConfig(level=effective, format=LOG_FORMAT, force=True)

    # Per-request HTTP logs drown out provider fallthrough messages
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(effective, logging.WARNING))

    for area, logger_name in AREA_LOGGERS.items():
        area_level = _parse_level(env.get(f"LOG_LEVEL_{area}"))
        if area_level is not None:
            logging.getLogger(logger_name).setLevel(area_level)
