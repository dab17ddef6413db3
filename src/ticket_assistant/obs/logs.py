"""Console logging setup shared by the API and scripts."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach a single stdout handler to the package logger.

    Calling this more than once only updates the level.
    """
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logger = logging.getLogger("ticket_assistant")
    logger.setLevel(resolved)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    for handler in logger.handlers:
        handler.setLevel(resolved)
    return logger
