"""Selection, mode, and watch-subscription bookkeeping for one session."""

from __future__ import annotations

import logging

from ..errors import ModeAlreadyActiveError
from ..keyspace import Entry, TreeNode, normalize_path
from ..store import CancelWatch
from .modes import Mode
from .router import InputRouter

logger = logging.getLogger(__name__)


class Session:
    """Mutable session state owned by the UI thread.

    ``selected_entry`` is a value snapshot rather than a node reference, so
    it survives tree rebuilds and is re-resolved by key afterwards. At most
    one non-browsing mode and one watch cancel handle exist at a time.
    """

    def __init__(self, router: InputRouter | None = None) -> None:
        self.router = router
        self.selected_entry: Entry | None = None
        self.mode = Mode.BROWSING
        self.active_watch_cancel: CancelWatch | None = None

    def select_entry(self, entry: Entry) -> None:
        self.selected_entry = entry

    def clear_selection(self) -> None:
        self.selected_entry = None

    @property
    def selected_key(self) -> str | None:
        return self.selected_entry.key if self.selected_entry is not None else None

    def enter_mode(self, mode: Mode) -> None:
        """Switch to ``mode``.

        Raises ``ModeAlreadyActiveError`` without changing anything when a
        non-browsing mode is active and ``mode`` is non-browsing too.
        """
        if mode is Mode.BROWSING:
            self.exit_mode()
            return
        if self.mode is not Mode.BROWSING:
            raise ModeAlreadyActiveError(self.mode.value, mode.value)
        self.mode = mode
        if self.router is not None:
            self.router.activate(mode)
        logger.debug("mode %s", mode.value)

    def exit_mode(self) -> None:
        if self.mode is Mode.BROWSING:
            return
        logger.debug("mode %s -> browsing", self.mode.value)
        self.mode = Mode.BROWSING
        if self.router is not None:
            self.router.restore()

    def set_watch(self, cancel: CancelWatch) -> None:
        """Record ``cancel`` as the live subscription, cancelling any prior one first."""
        self.cancel_watch()
        self.active_watch_cancel = cancel

    def cancel_watch(self) -> None:
        cancel = self.active_watch_cancel
        self.active_watch_cancel = None
        if cancel is not None:
            cancel()

    def reconcile_selection(self, root: TreeNode) -> None:
        """Refresh the selected snapshot from ``root`` or clear it when the key vanished."""
        entry = self.selected_entry
        if entry is None:
            return
        node = root.find(normalize_path(entry.key))
        if node is None or node.entry is None:
            logger.debug("selection %s vanished", entry.key)
            self.selected_entry = None
            return
        self.selected_entry = node.entry


__all__ = ["Session"]
