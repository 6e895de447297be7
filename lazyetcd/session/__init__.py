"""Session state: selection, exclusive modes, and mode-aware input routing."""

from __future__ import annotations

from .modes import Mode
from .router import DEFAULT_TERMINATE_KEYS, InputRouter
from .state import Session

__all__ = ["Mode", "DEFAULT_TERMINATE_KEYS", "InputRouter", "Session"]
