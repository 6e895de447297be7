"""Error taxonomy shared by the controller, store adapters, and config layer.

Every failure a user can trigger maps to one of these classes so the
controller can turn it into exactly one status line.
"""

from __future__ import annotations


class LazyEtcdError(Exception):
    """Base class for all lazyetcd errors."""


class NotConnectedError(LazyEtcdError):
    """No active store handle."""

    def __init__(self, message: str = "not connected to etcd") -> None:
        super().__init__(message)


class StoreOperationError(LazyEtcdError):
    """A get/put/delete/list/watch-setup call failed."""


class KeyNotFoundError(StoreOperationError):
    """Requested key does not exist."""

    def __init__(self, key: str) -> None:
        super().__init__(f"key not found: {key}")
        self.key = key


class ConnectionFailedError(StoreOperationError):
    """Client creation or health check failed."""


class ValidationError(LazyEtcdError):
    """Input rejected before any store call."""


class PartialRenameError(LazyEtcdError):
    """Old key was deleted but writing the new key failed."""

    def __init__(self, old_key: str, new_key: str, cause: Exception) -> None:
        super().__init__(
            f"renamed {old_key} -> {new_key} only partially: {old_key} deleted, write failed: {cause}"
        )
        self.old_key = old_key
        self.new_key = new_key
        self.cause = cause


class WatchInterruptedError(LazyEtcdError):
    """A wanted watch subscription ended unexpectedly."""


class ModeAlreadyActiveError(LazyEtcdError):
    """A second non-browsing mode was requested while one is active."""

    def __init__(self, active: object, requested: object) -> None:
        super().__init__(f"cannot enter {requested}: {active} is active")
        self.active = active
        self.requested = requested


class ProfileError(LazyEtcdError):
    """Profile configuration problem."""


class ProfileNotFoundError(ProfileError):
    def __init__(self, name: str) -> None:
        super().__init__(f"profile not found: {name}")
        self.name = name


class ProfileValidationError(ProfileError):
    pass


class NoDefaultProfileError(ProfileError):
    def __init__(self) -> None:
        super().__init__("no default profile set")


__all__ = [
    "LazyEtcdError",
    "NotConnectedError",
    "StoreOperationError",
    "KeyNotFoundError",
    "ConnectionFailedError",
    "ValidationError",
    "PartialRenameError",
    "WatchInterruptedError",
    "ModeAlreadyActiveError",
    "ProfileError",
    "ProfileNotFoundError",
    "ProfileValidationError",
    "NoDefaultProfileError",
]
