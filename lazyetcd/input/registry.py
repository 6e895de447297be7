"""Key dispatch tables for the browsing view and each modal mode."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

KeyAction = Callable[[], "bool | None"]
TextAction = Callable[[str], "bool | None"]


@dataclass(frozen=True)
class KeyComboBinding:
    """Key tokens that all trigger ``handler``."""

    combos: tuple[str, ...]
    handler: KeyAction


class KeyComboRegistry:
    """Exact-match table from key token to action.

    ``fallback`` receives the raw token of any key without a binding, which
    is how form tables accept free text. Handlers return ``True`` to request
    quit; ``dispatch`` returns ``None`` for an unbound key.
    """

    def __init__(self, name: str = "", fallback: TextAction | None = None) -> None:
        self.name = name
        self._fallback = fallback
        self._handlers: dict[str, KeyAction] = {}

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Add ``binding``; a token bound twice keeps the later handler."""
        self._handlers.update(dict.fromkeys(binding.combos, binding.handler))
        return self

    def bind(self, *combos: str) -> Callable[[KeyAction], KeyAction]:
        def decorator(handler: KeyAction) -> KeyAction:
            self.register_binding(KeyComboBinding(combos, handler))
            return handler

        return decorator

    def combos(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def handles(self, key: str) -> bool:
        return self._fallback is not None or key in self._handlers

    def dispatch(self, key: str) -> bool | None:
        handler = self._handlers.get(key)
        if handler is not None:
            return handler()
        return self._fallback(key) if self._fallback is not None else None
