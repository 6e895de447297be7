"""Live watch integration.

Store callbacks fire on the client's notification thread. They only put
``(generation, item)`` pairs on a queue; ``drain`` runs on the UI thread and
is the single place that turns them into log lines or an interruption
report. Every ``start``/``stop`` bumps the generation so anything still in
flight from an earlier subscription is discarded.
"""

from __future__ import annotations

import logging
import threading
from queue import Empty, Queue

from .errors import WatchInterruptedError
from .session import Session
from .store import EventType, StoreClient, WatchEvent
from .view import ViewCallbacks

logger = logging.getLogger(__name__)

MAX_DRAIN_PER_TICK = 256


def format_event(event: WatchEvent) -> str:
    """Return the log line for one change notification."""
    if event.type is EventType.DELETE:
        return f"► DELETE (rev {event.mod_revision})  {event.key}: key was deleted"
    return f"► PUT (rev {event.mod_revision})  {event.key} = {event.value}"


class LiveUpdateIntegrator:
    """Own the single watch subscription and marshal its output to the UI."""

    def __init__(self, session: Session, view: ViewCallbacks) -> None:
        self._session = session
        self._view = view
        self._lock = threading.Lock()
        self._generation = 0
        self._queue: Queue[tuple[int, WatchEvent | Exception]] = Queue()
        self.key: str | None = None
        self.prefix = False
        self._error_reported = False

    @property
    def active(self) -> bool:
        return self.key is not None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def _bump_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def start(self, client: StoreClient, key: str, *, prefix: bool = False, current_value: str | None = None) -> None:
        """Replace any live subscription with one for ``key``.

        The previous subscription is cancelled before the new one is opened.
        Raises ``StoreOperationError`` when the new subscription cannot be
        established; the previous one stays cancelled.
        """
        self._session.cancel_watch()
        generation = self._bump_generation()
        self.key = None
        self._error_reported = False

        def on_event(event: WatchEvent) -> None:
            self._queue.put((generation, event))

        def on_error(error: Exception) -> None:
            self._queue.put((generation, error))

        cancel = client.watch(key, on_event, on_error, prefix=prefix)
        self._session.set_watch(cancel)
        self.key = key
        self.prefix = prefix
        logger.info("watching %s%s", key, " (prefix)" if prefix else "")

        self._view.clear_watch_log()
        self._view.append_watch_log(f"Started watching {key}")
        if current_value is not None:
            self._view.append_watch_log(f"Current value: {current_value}")
        self._view.append_watch_log("Waiting for changes...")

    def stop(self) -> str | None:
        """Cancel the live subscription; returns the key that was watched."""
        key = self.key
        self._session.cancel_watch()
        self._bump_generation()
        self.key = None
        if key is not None:
            logger.info("stopped watching %s", key)
        return key

    def drain(self, limit: int = MAX_DRAIN_PER_TICK) -> int:
        """Apply queued notifications of the live subscription; returns lines appended."""
        current = self.generation
        appended = 0
        for _ in range(limit):
            try:
                generation, item = self._queue.get_nowait()
            except Empty:
                break
            if generation != current or self.key is None:
                continue
            if isinstance(item, Exception):
                self._report_interrupted(item)
                continue
            self._view.append_watch_log(format_event(item))
            appended += 1
        return appended

    def _report_interrupted(self, error: Exception) -> None:
        if self._error_reported:
            return
        self._error_reported = True
        key = self.key
        interrupted = WatchInterruptedError(f"watch on {key} interrupted: {error}")
        logger.warning("%s", interrupted)
        # The subscription is gone; drop the handle without re-subscribing.
        self._session.cancel_watch()
        self._view.append_watch_log(f"Watch error: {error}")
        self._view.set_status(f"Watch interrupted for {key}: {error} (press w to watch again)", "error")

    @property
    def interrupted(self) -> bool:
        return self._error_reported


__all__ = ["MAX_DRAIN_PER_TICK", "LiveUpdateIntegrator", "format_event"]
