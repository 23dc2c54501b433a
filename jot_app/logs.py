"""Logging setup for the jot command-line process."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "jot-stderr"


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Attach a single stderr handler to the ``jot_app`` logger."""

    logger = logging.getLogger("jot_app")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
        level = resolved
    logger.setLevel(level)

    # Replace rather than retarget: the previous stderr may already be closed.
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "LOG_FORMAT"]
