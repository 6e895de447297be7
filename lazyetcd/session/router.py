"""Mode-aware key routing.

The browsing table is installed once and never mutated by mode changes.
Entering a mode installs that mode's table in a single override slot;
leaving the mode empties the slot, which restores browsing dispatch as it
was. Terminate keys bypass both tables.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..input import KeyComboRegistry
from .modes import Mode

logger = logging.getLogger(__name__)

DEFAULT_TERMINATE_KEYS: tuple[str, ...] = ("CTRL_C",)


class InputRouter:
    """Route key tokens to the browsing table or the active mode table."""

    def __init__(
        self,
        browsing: KeyComboRegistry,
        on_terminate: Callable[[], bool | None],
        terminate_keys: Iterable[str] = DEFAULT_TERMINATE_KEYS,
    ) -> None:
        self.browsing = browsing
        self._on_terminate = on_terminate
        self.terminate_keys = frozenset(terminate_keys)
        self._mode_tables: dict[Mode, KeyComboRegistry] = {}
        self._override: KeyComboRegistry | None = None

    def register_mode_table(self, mode: Mode, table: KeyComboRegistry) -> None:
        if mode is Mode.BROWSING:
            raise ValueError("browsing table is fixed at construction")
        self._mode_tables[mode] = table

    @property
    def active_table(self) -> KeyComboRegistry:
        return self._override if self._override is not None else self.browsing

    @property
    def overridden(self) -> bool:
        return self._override is not None

    def activate(self, mode: Mode) -> None:
        """Install the table registered for ``mode`` in the override slot."""
        table = self._mode_tables.get(mode)
        if table is None:
            # Unregistered modes still block browsing shortcuts.
            table = KeyComboRegistry(name=mode.value)
        self._override = table
        logger.debug("input table -> %s", table.name or mode.value)

    def restore(self) -> None:
        self._override = None
        logger.debug("input table -> browsing")

    def dispatch(self, key: str) -> bool | None:
        """Dispatch ``key``; ``True`` requests quit, ``None`` means unhandled."""
        if key in self.terminate_keys:
            return self._on_terminate()
        return self.active_table.dispatch(key)


__all__ = ["DEFAULT_TERMINATE_KEYS", "InputRouter"]
