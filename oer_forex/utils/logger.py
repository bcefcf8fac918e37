"""Logging utilities for the oer_forex package."""

from __future__ import annotations

import logging
import os
from typing import Optional

_LOGGER: Optional[logging.Logger] = None
LOG_LEVEL_ENV = "OER_FOREX_LOG_LEVEL"


def get_logger(name: str = "oer_forex") -> logging.Logger:
    """Return a logger, configuring the root handler on first use.

    The level defaults to INFO and can be raised or lowered through the
    ``OER_FOREX_LOG_LEVEL`` environment variable.
    """
    global _LOGGER
    if _LOGGER is None:
        level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, level_name, logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        _LOGGER = logging.getLogger("oer_forex")
    return logging.getLogger(name)


def redact_query(url: str) -> str:
    """Strip the query string (which carries the app id) from ``url``."""

    return url.split("?", 1)[0]
