"""Terminal runtime: UI-thread state, rendering, and the main loop."""

from __future__ import annotations

from .app import AppOptions, EtcdBrowserApp, initial_left_width
from .commands import CommandFailure, CommandRunner
from .loop import run_main_loop
from .state import AppState
from .view_bridge import QueuedView

__all__ = [
    "AppOptions",
    "AppState",
    "CommandFailure",
    "CommandRunner",
    "EtcdBrowserApp",
    "QueuedView",
    "initial_left_width",
    "run_main_loop",
]
