"""Logging setup for feed_aggregator."""

import logging
import sys
from typing import Optional

from feed_aggregator.config import ServerConfig


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("feed_aggregator")


def setup_logging(config: Optional[ServerConfig] = None, level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger.

    Args:
        config: Server configuration supplying the default log level
        level: Explicit level name, overrides the configured one

    Returns:
        The configured package logger
    """
    level_name = (level or (config.log_level if config else "INFO")).upper()

    # Replace handlers so repeated calls (tests, reloads) don't duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.propagate = False

    return logger
