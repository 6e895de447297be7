"""Exclusive interaction modes."""

from __future__ import annotations

from enum import Enum


class Mode(Enum):
    BROWSING = "browsing"
    FORM_ACTIVE = "form"
    CONFIRM_ACTIVE = "confirm"
    WATCH_ACTIVE = "watch"


__all__ = ["Mode"]
