"""Logging configuration for the Gantt application."""
from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "gantt_canvas"

VERBOSITY_QUIET = 0  # warnings and errors
VERBOSITY_INFO = 1  # saves, loads, exports
VERBOSITY_DEBUG = 2  # every mutation and drag session


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or a child of it for ``name``."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the package logger; safe to call more than once."""
    logger = get_logger()
    logger.handlers.clear()
    level_map = {
        VERBOSITY_QUIET: logging.WARNING,
        VERBOSITY_INFO: logging.INFO,
    }
    logger.setLevel(level_map.get(max(verbosity, 0), logging.DEBUG))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and restore defaults (used by tests)."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
