"""Structured logging setup for syllabus-sync.

Every module logs through ``logging.getLogger(__name__)``; this module
installs the single stderr handler the CLI uses, with ISO 8601 timestamps
and pipe-separated fields.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Marks handlers installed here so repeated calls stay idempotent.
_HANDLER_ATTR = "_syllabus_sync_log_handler"

# Chatty third-party loggers that drown out pipeline output at DEBUG.
_NOISY_LOGGERS = ("googleapiclient.discovery_cache", "httpx", "pdfminer")


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure the root logger with the project formatter.

    Calling this function again only updates the level of the handler it
    installed the first time.

    Args:
        level: A standard logging level name (``"DEBUG"``, ``"INFO"``, ...).
        stream: Destination stream.  Defaults to ``sys.stderr``.

    Raises:
        ValueError: If *level* is not a recognised logging level string.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            handler.setLevel(numeric_level)
            return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger (thin wrapper over :func:`logging.getLogger`)."""
    return logging.getLogger(name)
