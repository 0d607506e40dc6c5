"""Logging setup for applications embedding the consultation package."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger and set its level.

    Calling this more than once replaces the handler instead of stacking them.
    """
    logger = logging.getLogger("telehealth_consult")
    for handler in list(logger.handlers):
        if getattr(handler, "_telehealth_consult", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._telehealth_consult = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
