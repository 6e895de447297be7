"""Keyboard input: raw token decoding and dispatch tables."""

from __future__ import annotations

from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_key
from .registry import KeyComboBinding, KeyComboRegistry

__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "read_key", "KeyComboBinding", "KeyComboRegistry"]
