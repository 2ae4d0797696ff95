"""
Unified log format with importance (0-10) for refactoring output.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from typing import IO, Optional, Union

# Importance (0-10) derived from the standard level when not set explicitly
LEVEL_TO_IMPORTANCE = {
    "DEBUG": 2,
    "INFO": 4,
    "WARNING": 6,
    "ERROR": 8,
    "CRITICAL": 10,
}

UNIFIED_DATE_FMT = "%Y-%m-%d %H:%M:%S"
UNIFIED_FORMAT_STR = "%(asctime)s | %(levelname)-8s | %(importance)s | %(name)s | %(message)s"

_HANDLER_NAME = "cst_refactor.unified"


def importance_from_level(level_name: str) -> int:
    """Return importance 0-10 for a standard log level name. Returns 4 for unknown."""
    return LEVEL_TO_IMPORTANCE.get((level_name or "").strip().upper(), 4)


class UnifiedFormatter(logging.Formatter):
    """
    Formatter that outputs: timestamp | level | importance | logger | message.

    Importance comes from `extra={"importance": N}` or is derived from the level.
    """

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, "importance", None) is None:
            record.importance = importance_from_level(record.levelname)
        return super().format(record)


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    Attach one unified-format handler to the package logger.

    Calling it again only adjusts the level and stream.

    Args:
        level: Level name or number
        stream: Output stream (stderr by default)

    Returns:
        The `cst_refactor` package logger
    """
    logger = logging.getLogger("cst_refactor")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(UnifiedFormatter(fmt=UNIFIED_FORMAT_STR, datefmt=UNIFIED_DATE_FMT))
    logger.addHandler(handler)
    return logger
