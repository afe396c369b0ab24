"""Centralized logging configuration."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "study_navigator"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach a console handler to the package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR). Defaults to INFO.

    Returns:
        The configured package logger.
    """
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Avoid duplicate handlers
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger
