"""Logging helpers for mvcamera.

The library only emits through the standard `logging` module; a handler is
attached lazily so scripts and tests are not silent by default.
"""

from __future__ import annotations

import logging

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

VERBOSE_LEVELS: dict[str, int] = {
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

DEFAULT_VERBOSE_LEVEL = "info"


def default_logger() -> logging.Logger:
    """Package logger, with a stream handler if none is configured."""

    logger = logging.getLogger("mvcamera")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(VERBOSE_LEVELS[DEFAULT_VERBOSE_LEVEL])
    return logger


def set_verbose_level(level: str) -> logging.Logger:
    """Set the package log level from a name (fatal, error, warning, info, debug, trace)."""

    key = str(level).strip().lower()
    if key not in VERBOSE_LEVELS:
        raise ValueError(f"unknown verbose level {level!r} (expected one of {', '.join(VERBOSE_LEVELS)})")
    logger = default_logger()
    logger.setLevel(VERBOSE_LEVELS[key])
    return logger
