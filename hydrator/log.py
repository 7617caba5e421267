"""Loguru setup for the ``hydrator`` command line.

The library itself only emits through ``loguru.logger``; configuring sinks is
left to the application.  The CLI routes botocore's stdlib logging into the
same stderr sink.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

_FORMAT = "<level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"

# S3 client libraries log every request below WARNING
_NOISY_LOGGERS = ("boto3", "botocore", "urllib3")


class _LoguruHandler(logging.Handler):
    """Forward stdlib records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO") -> None:
    """Send hydrator and storage-client logs to stderr at *level*."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_FORMAT)

    logging.basicConfig(handlers=[_LoguruHandler()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
