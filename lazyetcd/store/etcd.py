"""``StoreClient`` backed by a real etcd v3 cluster via the ``etcd3`` package.

The gRPC client stack is imported lazily so the tree/session core and the
demo store stay usable without touching protobuf at startup.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from ..errors import ConnectionFailedError, KeyNotFoundError, LazyEtcdError, StoreOperationError
from ..keyspace import Entry
from .base import (
    CancelWatch,
    ClusterStatus,
    EventType,
    StoreClient,
    StoreConfig,
    WatchCallback,
    WatchErrorCallback,
    WatchEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 2379

_etcd3: Any = None


def _ensure_etcd3_loaded() -> Any:
    global _etcd3
    if _etcd3 is not None:
        return _etcd3
    import etcd3

    _etcd3 = etcd3
    return _etcd3


def parse_endpoint(endpoint: str) -> tuple[str, int]:
    """Split ``host:port`` (scheme optional) into its parts."""
    text = endpoint.strip()
    for scheme in ("http://", "https://"):
        if text.startswith(scheme):
            text = text[len(scheme):]
            break
    text = text.rstrip("/")
    if not text:
        raise ConnectionFailedError(f"invalid endpoint: {endpoint!r}")
    host, sep, port_text = text.rpartition(":")
    if not sep:
        return text, DEFAULT_PORT
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ConnectionFailedError(f"invalid endpoint port: {endpoint!r}") from exc
    return host or "localhost", port


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


@contextmanager
def _translate_errors(action: str):
    try:
        yield
    except LazyEtcdError:
        raise
    except Exception as exc:
        raise StoreOperationError(f"{action} failed: {exc}") from exc


class EtcdStore(StoreClient):
    """Thin adapter from ``etcd3.Etcd3Client`` to ``StoreClient``."""

    def __init__(self, config: StoreConfig, client: Any = None) -> None:
        self.config = config
        if client is None:
            client = self._open_client(config)
        self._client = client

    @staticmethod
    def _open_client(config: StoreConfig) -> Any:
        if not config.endpoints:
            raise ConnectionFailedError("no endpoints configured")
        host, port = parse_endpoint(config.endpoints[0])
        if len(config.endpoints) > 1:
            logger.info("using first of %d endpoints: %s", len(config.endpoints), config.endpoints[0])

        kwargs: dict[str, Any] = {
            "host": host,
            "port": port,
            "timeout": config.request_timeout,
        }
        if config.username:
            kwargs["user"] = config.username
            kwargs["password"] = config.password
        tls = config.tls
        if tls is not None and tls.enabled:
            if tls.insecure_skip_verify:
                logger.warning("insecure_skip_verify is not supported by the etcd3 client; verifying peer")
            if tls.ca_file:
                kwargs["ca_cert"] = tls.ca_file
            if tls.cert_file and tls.key_file:
                kwargs["cert_cert"] = tls.cert_file
                kwargs["cert_key"] = tls.key_file

        etcd3 = _ensure_etcd3_loaded()
        logger.debug("opening etcd client %s:%d", host, port)
        try:
            return etcd3.client(**kwargs)
        except Exception as exc:
            raise ConnectionFailedError(f"cannot open client for {host}:{port}: {exc}") from exc

    @staticmethod
    def _entry_from(value: bytes | None, meta: Any) -> Entry:
        return Entry(
            key=_decode(meta.key),
            value=_decode(value),
            create_revision=int(meta.create_revision),
            mod_revision=int(meta.mod_revision),
            version=int(meta.version),
            lease_id=int(getattr(meta, "lease_id", 0) or 0),
        )

    def get(self, key: str) -> Entry:
        with _translate_errors(f"get {key}"):
            value, meta = self._client.get(key)
        if meta is None:
            raise KeyNotFoundError(key)
        return self._entry_from(value, meta)

    def put(self, key: str, value: str, ttl: int | None = None) -> None:
        with _translate_errors(f"put {key}"):
            if ttl is None:
                self._client.put(key, value)
                return
            lease = self._client.lease(int(ttl))
            self._client.put(key, value, lease=lease)

    def delete(self, key: str) -> None:
        with _translate_errors(f"delete {key}"):
            self._client.delete(key)

    def list(self, prefix: str = "") -> list[Entry]:
        with _translate_errors(f"list {prefix or '<all>'}"):
            if prefix:
                results = self._client.get_prefix(prefix)
            else:
                results = self._client.get_all()
            entries = [self._entry_from(value, meta) for value, meta in results]
        entries.sort(key=lambda entry: entry.key)
        return entries

    def watch(
        self,
        key: str,
        on_event: WatchCallback,
        on_error: WatchErrorCallback,
        *,
        prefix: bool = False,
    ) -> CancelWatch:
        etcd3 = _ensure_etcd3_loaded()

        def callback(response: Any) -> None:
            if isinstance(response, Exception):
                on_error(StoreOperationError(f"watch {key} failed: {response}"))
                return
            for raw_event in response.events:
                on_event(self._event_from(etcd3, raw_event))

        with _translate_errors(f"watch {key}"):
            if prefix:
                watch_id = self._client.add_watch_prefix_callback(key, callback)
            else:
                watch_id = self._client.add_watch_callback(key, callback)

        def cancel() -> None:
            try:
                self._client.cancel_watch(watch_id)
            except Exception:
                logger.debug("cancel_watch(%s) failed", watch_id, exc_info=True)

        return cancel

    @staticmethod
    def _event_from(etcd3: Any, raw_event: Any) -> WatchEvent:
        is_delete = isinstance(raw_event, etcd3.events.DeleteEvent)
        return WatchEvent(
            type=EventType.DELETE if is_delete else EventType.PUT,
            key=_decode(raw_event.key),
            value="" if is_delete else _decode(raw_event.value),
            create_revision=int(raw_event.create_revision),
            mod_revision=int(raw_event.mod_revision),
            version=int(raw_event.version),
        )

    def count(self) -> int:
        with _translate_errors("count"):
            return sum(1 for _ in self._client.get_all(keys_only=True))

    def status(self) -> ClusterStatus:
        with _translate_errors("status"):
            status = self._client.status()
            leader = status.leader.name if status.leader is not None else ""
            members = tuple(member.name for member in self._client.members)
        return ClusterStatus(leader=leader, members=members, healthy=True)

    def health_check(self) -> None:
        try:
            self.status()
        except StoreOperationError as exc:
            raise ConnectionFailedError(f"health check failed: {exc}") from exc

    def lease_ttl(self, lease_id: int) -> int:
        with _translate_errors(f"lease {lease_id}"):
            info = self._client.get_lease_info(lease_id)
        return int(info.TTL)

    def close(self) -> None:
        with _translate_errors("close"):
            self._client.close()


__all__ = ["DEFAULT_PORT", "EtcdStore", "parse_endpoint"]
