"""Logging setup for the interactive session.

Nothing may be written to the terminal while the TUI owns it, so records go
to a bounded in-memory ring (shown by the F1 debug panel) and, optionally,
to a log file.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from pathlib import Path

LOGGER_NAME = "lazyetcd"
DEFAULT_CAPACITY = 500
LINE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
PANEL_FORMAT = "%(asctime)s %(levelname)-5s %(message)s"


class RingBufferHandler(logging.Handler):
    """Keep the last ``capacity`` formatted records in memory."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        super().__init__()
        self._lines: deque[str] = deque(maxlen=max(1, capacity))
        self._lines_lock = threading.Lock()
        self.setFormatter(logging.Formatter(PANEL_FORMAT, datefmt="%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            text = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._lines_lock:
            self._lines.extend(text.splitlines() or [""])

    def lines(self, limit: int | None = None) -> list[str]:
        with self._lines_lock:
            snapshot = list(self._lines)
        if limit is not None:
            return snapshot[-limit:] if limit > 0 else []
        return snapshot

    def clear(self) -> None:
        with self._lines_lock:
            self._lines.clear()


_ring: RingBufferHandler | None = None


def parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level}")
    return resolved


def configure_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    capacity: int = DEFAULT_CAPACITY,
) -> RingBufferHandler:
    """Install ring-buffer (and optional file) handlers on the package logger.

    Calling again replaces the handlers installed by the previous call.
    """
    global _ring
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_lazyetcd_owned", False):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(parse_level(level))
    logger.propagate = False

    ring = RingBufferHandler(capacity)
    ring._lazyetcd_owned = True
    logger.addHandler(ring)

    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LINE_FORMAT))
        file_handler._lazyetcd_owned = True
        logger.addHandler(file_handler)

    _ring = ring
    return ring


def recent_lines(limit: int | None = None) -> list[str]:
    """Return buffered log lines, oldest first (empty before configuration)."""
    if _ring is None:
        return []
    return _ring.lines(limit)


__all__ = [
    "DEFAULT_CAPACITY",
    "LOGGER_NAME",
    "RingBufferHandler",
    "configure_logging",
    "parse_level",
    "recent_lines",
]
