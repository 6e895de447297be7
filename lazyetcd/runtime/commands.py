"""Single background worker for blocking controller commands."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandFailure:
    """Unexpected exception escaping a command, reported back to the UI thread."""

    label: str
    error: BaseException


class CommandRunner:
    """Run at most one command at a time off the UI thread.

    ``submit`` refuses new work while a command is running so the UI can keep
    polling input (for the hard-quit key) without queueing stale actions.
    """

    def __init__(self, spawn: bool = True) -> None:
        self._spawn = spawn
        self._lock = threading.Lock()
        self._label = ""
        self._running = False
        self._failures: Queue[CommandFailure] = Queue()

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._running

    @property
    def label(self) -> str:
        with self._lock:
            return self._label

    def submit(self, label: str, command: Callable[[], object]) -> bool:
        with self._lock:
            if self._running:
                return False
            self._running = True
            self._label = label
        if not self._spawn:
            self._run(label, command)
            return True
        thread = threading.Thread(target=self._run, args=(label, command), name=f"lazyetcd-{label}", daemon=True)
        thread.start()
        return True

    def _run(self, label: str, command: Callable[[], object]) -> None:
        try:
            command()
        except Exception as exc:
            logger.exception("command %s crashed", label)
            self._failures.put(CommandFailure(label, exc))
        finally:
            with self._lock:
                self._running = False
                self._label = ""

    def drain_failures(self) -> list[CommandFailure]:
        failures: list[CommandFailure] = []
        while True:
            try:
                failures.append(self._failures.get_nowait())
            except Empty:
                return failures


__all__ = ["CommandFailure", "CommandRunner"]
