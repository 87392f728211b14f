"""Logging configuration for the imagesync service."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure root logging once and return the package logger.

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG"

    Returns:
        The ``imagesync`` logger
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logger = logging.getLogger("imagesync")
    logger.setLevel(level.upper())
    # httpx logs every probe request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger
