"""Logging helpers."""

from __future__ import annotations

import logging
import sys
from typing import Optional

_LOGGING_CONFIGURED = False

_PACKAGE_LOGGER = "app_deployer"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level: int = logging.INFO, stream=None) -> None:
    """Send package log records to the operator's terminal.

    Messages are printed bare: they are deployment progress, not diagnostics.
    Calling again only changes the level and stream.
    """
    global _LOGGING_CONFIGURED
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(level)
    if _LOGGING_CONFIGURED:
        for handler in logger.handlers:
            if isinstance(handler, logging.StreamHandler):
                handler.setStream(stream or sys.stdout)
        return

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    _LOGGING_CONFIGURED = True
