"""Process-wide connection holder with readers/writer exclusion.

Readers (every controller operation) share the current client; ``connect``
and ``disconnect`` take the writer side so a client is never closed while
a call is in flight on it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ..errors import ConnectionFailedError, LazyEtcdError, NotConnectedError
from .base import StoreClient, StoreConfig

logger = logging.getLogger(__name__)

StoreFactory = Callable[[StoreConfig], StoreClient]


class ReadWriteLock:
    """Writer-preferring shared/exclusive lock built on ``threading.Condition``."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class ConnectionManager:
    """Owns at most one live ``StoreClient``."""

    def __init__(self, factory: StoreFactory) -> None:
        self._factory = factory
        self._lock = ReadWriteLock()
        self._client: StoreClient | None = None
        self._config: StoreConfig | None = None
        self.profile_name = ""

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def config(self) -> StoreConfig | None:
        return self._config

    def connect(self, config: StoreConfig, profile_name: str = "") -> None:
        """Replace the current client with a fresh, health-checked one.

        On failure the manager is left disconnected and the error is raised
        as ``ConnectionFailedError``.
        """
        with self._lock.write():
            self._close_locked()
            try:
                client = self._factory(config)
            except LazyEtcdError as exc:
                raise ConnectionFailedError(str(exc)) from exc
            try:
                client.health_check()
            except LazyEtcdError as exc:
                client.close()
                raise ConnectionFailedError(f"cannot reach {', '.join(config.endpoints)}: {exc}") from exc
            self._client = client
            self._config = config
            self.profile_name = profile_name
        logger.info("connected to %s (profile=%s)", ", ".join(config.endpoints), profile_name or "-")

    def disconnect(self) -> None:
        with self._lock.write():
            self._close_locked()

    def _close_locked(self) -> None:
        client = self._client
        self._client = None
        self._config = None
        self.profile_name = ""
        if client is None:
            return
        try:
            client.close()
        except LazyEtcdError:
            logger.warning("error while closing previous client", exc_info=True)

    @contextmanager
    def reading(self) -> Iterator[StoreClient]:
        """Yield the live client under the shared lock."""
        with self._lock.read():
            client = self._client
            if client is None:
                raise NotConnectedError()
            yield client


__all__ = ["ConnectionManager", "ReadWriteLock", "StoreFactory"]
