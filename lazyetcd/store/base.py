"""Store-client contract consumed by the controller and watch integrator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..keyspace import Entry

DEFAULT_DIAL_TIMEOUT_SECONDS = 5.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0


class EventType(Enum):
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class WatchEvent:
    """One change notification for a watched key or prefix."""

    type: EventType
    key: str
    value: str = ""
    prev_value: str = ""
    create_revision: int = 0
    mod_revision: int = 0
    version: int = 0


@dataclass(frozen=True)
class ClusterStatus:
    leader: str = ""
    members: tuple[str, ...] = ()
    healthy: bool = True


@dataclass(frozen=True)
class TLSConfig:
    enabled: bool = False
    ca_file: str = ""
    cert_file: str = ""
    key_file: str = ""
    insecure_skip_verify: bool = False


@dataclass(frozen=True)
class StoreConfig:
    """Connection parameters derived from a profile."""

    endpoints: tuple[str, ...] = ("localhost:2379",)
    username: str = ""
    password: str = ""
    tls: TLSConfig | None = None
    dial_timeout: float = DEFAULT_DIAL_TIMEOUT_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS


WatchCallback = Callable[[WatchEvent], None]
WatchErrorCallback = Callable[[Exception], None]
CancelWatch = Callable[[], None]


class StoreClient(ABC):
    """Minimal key/value store surface.

    Implementations raise ``StoreOperationError`` (or a subclass) for every
    failed call. ``watch`` returns once the subscription is established and
    hands back a cancel callable; events and a terminal error are delivered
    through the callbacks, possibly from another thread.
    """

    @abstractmethod
    def get(self, key: str) -> Entry:
        """Return current entry or raise ``KeyNotFoundError``."""

    @abstractmethod
    def put(self, key: str, value: str, ttl: int | None = None) -> None:
        """Write ``value``; ``ttl`` seconds attaches a fresh lease."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete ``key``; deleting a missing key is not an error."""

    @abstractmethod
    def list(self, prefix: str = "") -> list[Entry]:
        """Return entries whose key starts with ``prefix`` sorted by key."""

    @abstractmethod
    def watch(
        self,
        key: str,
        on_event: WatchCallback,
        on_error: WatchErrorCallback,
        *,
        prefix: bool = False,
    ) -> CancelWatch:
        """Subscribe to changes of ``key`` (or keys under it when ``prefix``)."""

    @abstractmethod
    def count(self) -> int:
        """Return total number of keys."""

    @abstractmethod
    def status(self) -> ClusterStatus:
        """Return cluster health/leader information."""

    @abstractmethod
    def lease_ttl(self, lease_id: int) -> int:
        """Return remaining seconds of ``lease_id``."""

    def health_check(self) -> None:
        """Raise ``StoreOperationError`` when the store is unreachable."""
        self.status()

    def close(self) -> None:
        return None


__all__ = [
    "DEFAULT_DIAL_TIMEOUT_SECONDS",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "EventType",
    "WatchEvent",
    "ClusterStatus",
    "TLSConfig",
    "StoreConfig",
    "WatchCallback",
    "WatchErrorCallback",
    "CancelWatch",
    "StoreClient",
]
