"""Logging utilities for go2make."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

_LOGGER_NAME = "go2make"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the go2make hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class DebugClock:
    """Tracks the time elapsed between consecutive debug records."""

    def __init__(self, now: Callable[[], float] = time.monotonic) -> None:
        self._now = now
        self._last: Optional[float] = None

    def lap(self) -> float:
        current = self._now()
        elapsed = 0.0 if self._last is None else current - self._last
        self._last = current
        return elapsed


class DebugFormatter(logging.Formatter):
    """Prefix debug records with ``DBG:`` or ``DBG(+elapsed):``."""

    def __init__(self, clock: DebugClock | None = None) -> None:
        super().__init__("%(message)s")
        self.clock = clock

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno > logging.DEBUG:
            return f"{record.levelname}: {message}"
        if self.clock is None:
            return f"DBG: {message}"
        return f"DBG(+{self.clock.lap():.6f}s): {message}"


def configure_logging(
    *, debug: bool = False, timed: bool = False, clock: DebugClock | None = None
) -> logging.Logger:
    """Configure the go2make logger with a stderr handler.

    ``timed`` implies ``debug``. When timed, ``clock`` (or a fresh
    :class:`DebugClock`) measures the gap between debug records.
    """
    if timed:
        debug = True
    level = logging.DEBUG if debug else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    if timed and clock is None:
        clock = DebugClock()
    stream_handler.setFormatter(DebugFormatter(clock if timed else None))
    logger.addHandler(stream_handler)
    return logger


__all__ = ["DebugClock", "DebugFormatter", "configure_logging", "get_logger"]
