"""Thread-safe in-process store with etcd-like revision semantics.

Backs ``--demo`` mode and the test-suite. Every mutation bumps one global
revision; keys keep their create revision and count versions; TTL puts
attach a lease that expires lazily the next time the store is touched.
Watch callbacks run synchronously on the mutating caller's thread.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from ..errors import KeyNotFoundError, StoreOperationError
from ..keyspace import Entry
from .base import (
    CancelWatch,
    ClusterStatus,
    EventType,
    StoreClient,
    WatchCallback,
    WatchErrorCallback,
    WatchEvent,
)

logger = logging.getLogger(__name__)

DEMO_ENTRIES: tuple[tuple[str, str], ...] = (
    ("/config/app/name", "lazyetcd-demo"),
    ("/config/app/features", '{"search": true, "watch": true, "ttl": [30, 60]}'),
    ("/config/db", "postgres://db.internal:5432/app"),
    ("/config/db/pool_size", "20"),
    ("/services/api/instance-1", '{"host": "10.0.0.11", "port": 8080}'),
    ("/services/api/instance-2", '{"host": "10.0.0.12", "port": 8080}'),
    ("/services/worker/instance-1", '{"host": "10.0.0.21", "queue": "default"}'),
    ("/locks/migrations", "held-by-worker-1"),
    ("/feature-flags/new-ui", "false"),
)


@dataclass
class _Lease:
    lease_id: int
    ttl: int
    expires_at: float


@dataclass(frozen=True)
class _Watcher:
    key: str
    prefix: bool
    on_event: WatchCallback
    on_error: WatchErrorCallback

    def matches(self, key: str) -> bool:
        if self.prefix:
            return key.startswith(self.key)
        return key == self.key


class InMemoryStore(StoreClient):
    """Reference ``StoreClient`` keeping everything in a dict."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, leader: str = "memory") -> None:
        self._clock = clock
        self._leader = leader
        self._lock = threading.RLock()
        self._entries: dict[str, Entry] = {}
        self._leases: dict[int, _Lease] = {}
        self._watchers: dict[int, _Watcher] = {}
        self._revision = 0
        self._lease_ids = itertools.count(1)
        self._watch_ids = itertools.count(1)
        self.close_count = 0

    @classmethod
    def with_demo_data(cls, **kwargs) -> InMemoryStore:
        store = cls(**kwargs)
        for key, value in DEMO_ENTRIES:
            store.put(key, value)
        return store

    @property
    def revision(self) -> int:
        return self._revision

    def _expire_leases_locked(self) -> list[tuple[_Watcher, WatchEvent]]:
        now = self._clock()
        expired = {lease_id for lease_id, lease in self._leases.items() if lease.expires_at <= now}
        if not expired:
            return []
        notifications: list[tuple[_Watcher, WatchEvent]] = []
        for key in sorted(key for key, entry in self._entries.items() if entry.lease_id in expired):
            notifications.extend(self._delete_locked(key))
        for lease_id in expired:
            del self._leases[lease_id]
        return notifications

    def _notify(self, notifications: list[tuple[_Watcher, WatchEvent]]) -> None:
        for watcher, event in notifications:
            watcher.on_event(event)

    def _matching_watchers_locked(self, key: str) -> list[_Watcher]:
        return [watcher for watcher in self._watchers.values() if watcher.matches(key)]

    def _delete_locked(self, key: str) -> list[tuple[_Watcher, WatchEvent]]:
        previous = self._entries.pop(key, None)
        if previous is None:
            return []
        self._revision += 1
        event = WatchEvent(
            type=EventType.DELETE,
            key=key,
            prev_value=previous.value,
            mod_revision=self._revision,
        )
        return [(watcher, event) for watcher in self._matching_watchers_locked(key)]

    def get(self, key: str) -> Entry:
        with self._lock:
            notifications = self._expire_leases_locked()
            entry = self._entries.get(key)
        self._notify(notifications)
        if entry is None:
            raise KeyNotFoundError(key)
        return entry

    def put(self, key: str, value: str, ttl: int | None = None) -> None:
        with self._lock:
            notifications = self._expire_leases_locked()
            lease_id = 0
            if ttl is not None:
                if ttl <= 0:
                    raise StoreOperationError(f"invalid ttl {ttl} for key {key}")
                lease_id = next(self._lease_ids)
                self._leases[lease_id] = _Lease(lease_id, ttl, self._clock() + ttl)
            self._revision += 1
            previous = self._entries.get(key)
            if previous is None:
                entry = Entry(
                    key=key,
                    value=value,
                    create_revision=self._revision,
                    mod_revision=self._revision,
                    version=1,
                    lease_id=lease_id,
                )
            else:
                entry = replace(
                    previous,
                    value=value,
                    mod_revision=self._revision,
                    version=previous.version + 1,
                    lease_id=lease_id,
                )
            self._entries[key] = entry
            event = WatchEvent(
                type=EventType.PUT,
                key=key,
                value=value,
                prev_value=previous.value if previous is not None else "",
                create_revision=entry.create_revision,
                mod_revision=entry.mod_revision,
                version=entry.version,
            )
            notifications.extend((watcher, event) for watcher in self._matching_watchers_locked(key))
        logger.debug("memory put %s rev=%d", key, entry.mod_revision)
        self._notify(notifications)

    def delete(self, key: str) -> None:
        with self._lock:
            notifications = self._expire_leases_locked()
            notifications.extend(self._delete_locked(key))
        self._notify(notifications)

    def list(self, prefix: str = "") -> list[Entry]:
        with self._lock:
            notifications = self._expire_leases_locked()
            entries = [entry for key, entry in sorted(self._entries.items()) if key.startswith(prefix)]
        self._notify(notifications)
        return entries

    def watch(
        self,
        key: str,
        on_event: WatchCallback,
        on_error: WatchErrorCallback,
        *,
        prefix: bool = False,
    ) -> CancelWatch:
        with self._lock:
            watch_id = next(self._watch_ids)
            self._watchers[watch_id] = _Watcher(key, prefix, on_event, on_error)

        def cancel() -> None:
            with self._lock:
                self._watchers.pop(watch_id, None)

        return cancel

    def interrupt_watches(self, error: Exception) -> None:
        """Terminate every live subscription with ``error``."""
        with self._lock:
            watchers = list(self._watchers.values())
            self._watchers.clear()
        for watcher in watchers:
            watcher.on_error(error)

    @property
    def watcher_count(self) -> int:
        with self._lock:
            return len(self._watchers)

    def count(self) -> int:
        with self._lock:
            notifications = self._expire_leases_locked()
            total = len(self._entries)
        self._notify(notifications)
        return total

    def status(self) -> ClusterStatus:
        return ClusterStatus(leader=self._leader, members=(self._leader,), healthy=True)

    def lease_ttl(self, lease_id: int) -> int:
        with self._lock:
            lease = self._leases.get(lease_id)
            if lease is None:
                raise StoreOperationError(f"lease {lease_id} not found")
            return max(0, int(lease.expires_at - self._clock()))

    def close(self) -> None:
        """Drop every subscription; data stays so the store can be reconnected."""
        with self._lock:
            self.close_count += 1
            self._watchers.clear()


__all__ = ["DEMO_ENTRIES", "InMemoryStore"]
