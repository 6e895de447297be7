"""Store collaborators: client contract, adapters, and the shared connection.

- ``StoreClient`` contract plus value types (events, cluster status, config)
- ``InMemoryStore`` used by ``--demo`` and tests
- ``EtcdStore`` adapter over the ``etcd3`` library
- ``ConnectionManager`` guarding the single live handle
"""

from __future__ import annotations

from .base import (
    DEFAULT_DIAL_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    CancelWatch,
    ClusterStatus,
    EventType,
    StoreClient,
    StoreConfig,
    TLSConfig,
    WatchCallback,
    WatchErrorCallback,
    WatchEvent,
)
from .connection import ConnectionManager, ReadWriteLock, StoreFactory
from .memory import DEMO_ENTRIES, InMemoryStore


def create_etcd_store(config: StoreConfig) -> StoreClient:
    """Default ``StoreFactory``: open an ``EtcdStore`` for ``config``."""
    from .etcd import EtcdStore

    return EtcdStore(config)


__all__ = [
    "DEFAULT_DIAL_TIMEOUT_SECONDS",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "CancelWatch",
    "ClusterStatus",
    "EventType",
    "StoreClient",
    "StoreConfig",
    "TLSConfig",
    "WatchCallback",
    "WatchErrorCallback",
    "WatchEvent",
    "ConnectionManager",
    "ReadWriteLock",
    "StoreFactory",
    "DEMO_ENTRIES",
    "InMemoryStore",
    "create_etcd_store",
]
