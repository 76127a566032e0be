"""Logging utilities built on top of :mod:`loguru`.

Library modules log through plain :mod:`logging` loggers; the CLI routes
those records into a single loguru sink on stderr so stdout stays free for
command output such as ``summarize``.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


class InterceptHandler(logging.Handler):
    """Forward standard-library records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str = "INFO") -> None:
    """Install the loguru sink and bridge the standard logging tree into it."""

    logger.remove()
    logger.add(lambda msg: sys.stderr.write(msg), level=level, format=LOG_FORMAT, colorize=False)
    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a standard-library logger tied to loguru."""

    return logging.getLogger(name or __name__)
