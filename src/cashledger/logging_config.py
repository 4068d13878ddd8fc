"""Logging setup for cashledger.

Modules log through ``logging.getLogger(__name__)``; this module only decides
where those records go. Messages are written as ``event key=value`` pairs so
they stay greppable in a terminal and parseable by a log shipper.
"""

import logging
import os
import sys
from typing import Optional

LOG_LEVEL_ENV = "CASHLEDGER_LOG_LEVEL"
_LOGGER_NAME = "cashledger"
_HANDLER_NAME = "cashledger-stderr"

LOG_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single stderr handler to the ``cashledger`` logger.

    Args:
        level: Level name; falls back to CASHLEDGER_LOG_LEVEL, then WARNING.

    Returns:
        The package logger.

    Raises:
        ValueError: If the level name is unknown
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level_name}'")

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Calling twice (e.g. CLI invoked repeatedly in tests) must not stack handlers
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


def reset_logging() -> None:
    """Remove the handler installed by configure_logging."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
