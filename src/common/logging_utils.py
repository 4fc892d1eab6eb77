"""Centralized logging setup and structured-trace helpers.

All modules obtain loggers via ``logging.getLogger(__name__)``; the root
logger is configured once by :func:`configure_logging` from the CLI.
"""
from __future__ import annotations

import logging
import os
import sys
import time
from typing import Any, Dict, Optional

from constants import Constants


def configure_logging(log_file: Optional[str] = None) -> None:
    """Configure the root logger.

    The level comes from the ``DEPSIZE_LOG_LEVEL`` environment variable
    (the CLI exports ``--loglevel`` into it), falling back to WARNING so
    that the report on stdout is not interleaved with INFO chatter.

    Args:
        log_file: Optional path for an additional file handler.
    """
    level_name = os.environ.get(Constants.ENV_LOG_LEVEL, Constants.DEFAULT_LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        root.addHandler(file_handler)

    root.setLevel(level)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records.

    None values are dropped so handlers only see populated fields.
    """
    return {key: value for key, value in fields.items() if value is not None}


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
