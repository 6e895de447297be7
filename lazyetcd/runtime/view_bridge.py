"""Marshal view pushes onto the UI thread.

``QueuedView.callbacks()`` hands the core a ``ViewCallbacks`` whose every
function only enqueues an update. ``apply_pending`` runs on the UI thread
and is the only code that mutates ``AppState`` in response.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from queue import Empty, Queue

from ..details import format_entry_details
from ..forms import FormState
from ..keyspace import (
    Entry,
    TreeNode,
    expand_to,
    nearest_visible_index,
    normalize_path,
    prune_expanded,
    visible_rows,
)
from ..ui_theme import UITheme
from ..view import ViewCallbacks
from .state import DETAILS_PLACEHOLDER, AppState

STATUS_MESSAGE_SECONDS = 5.0

StateUpdate = Callable[[AppState], None]


class QueuedView:
    """Queue of pending ``AppState`` updates fed by ``ViewCallbacks``."""

    def __init__(
        self,
        theme: Callable[[], UITheme],
        *,
        color: bool = True,
        value_style: str = "monokai",
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._theme = theme
        self._color = color
        self._value_style = value_style
        self._monotonic = monotonic
        self._pending: Queue[StateUpdate] = Queue()

    def _push(self, update: StateUpdate) -> None:
        self._pending.put(update)

    def apply_pending(self, state: AppState) -> int:
        applied = 0
        while True:
            try:
                update = self._pending.get_nowait()
            except Empty:
                return applied
            update(state)
            state.dirty = True
            applied += 1

    def callbacks(self) -> ViewCallbacks:
        return ViewCallbacks(
            show_tree=lambda root, preferred_key, expand_all: self._push(
                lambda state: apply_tree(state, root, preferred_key, expand_all)
            ),
            show_entry=lambda entry, ttl: self._push(lambda state: self._apply_entry(state, entry, ttl)),
            show_message=lambda title, body: self._push(lambda state: apply_message(state, title, body)),
            set_status=lambda text, level: self._push(lambda state: self._apply_status(state, text, level)),
            set_status_bar=lambda text: self._push(lambda state: setattr(state, "status_bar", text)),
            open_form=lambda form: self._push(lambda state: _set_form(state, form)),
            close_form=lambda: self._push(lambda state: _set_form(state, None)),
            open_confirm=lambda prompt: self._push(lambda state: setattr(state, "confirm_prompt", prompt)),
            close_confirm=lambda: self._push(lambda state: setattr(state, "confirm_prompt", None)),
            open_watch=lambda key: self._push(lambda state: _open_watch(state, key)),
            close_watch=lambda: self._push(lambda state: setattr(state, "watch_key", None)),
            append_watch_log=lambda line: self._push(lambda state: state.append_watch_line(line)),
            clear_watch_log=lambda: self._push(_clear_watch),
        )

    def _apply_entry(self, state: AppState, entry: Entry | None, ttl: int | None) -> None:
        state.detail_start = 0
        if entry is None:
            state.detail_lines = list(DETAILS_PLACEHOLDER)
            return
        state.detail_lines = format_entry_details(
            entry,
            ttl,
            theme=self._theme(),
            color=self._color,
            style=self._value_style,
        )

    def _apply_status(self, state: AppState, text: str, level: str) -> None:
        state.status_message = text
        state.status_level = level
        state.status_message_until = self._monotonic() + STATUS_MESSAGE_SECONDS


def apply_tree(state: AppState, root: TreeNode, preferred_key: str | None, expand_all: bool) -> None:
    """Install a rebuilt tree keeping expansion, cursor, and scroll where possible."""
    previous = state.current_row
    target = normalize_path(preferred_key) if preferred_key else (previous.path if previous else "/")
    expanded = prune_expanded(root, state.expanded)
    if preferred_key:
        expanded = expand_to(expanded, [target])
    state.root = root
    state.expand_all = expand_all
    state.expanded = expanded
    state.rows = visible_rows(root, expanded, expand_all)
    state.selected_idx = nearest_visible_index(state.rows, target)
    state.tree_start = min(state.tree_start, state.selected_idx)


def apply_message(state: AppState, title: str, body: str) -> None:
    state.detail_lines = [title, "", *body.splitlines()]
    state.detail_start = 0


def _set_form(state: AppState, form: FormState | None) -> None:
    state.form = form


def _open_watch(state: AppState, key: str) -> None:
    state.watch_key = key
    state.watch_follow = True


def _clear_watch(state: AppState) -> None:
    state.watch_lines = []
    state.watch_start = 0
    state.watch_follow = True


__all__ = ["QueuedView", "STATUS_MESSAGE_SECONDS", "apply_message", "apply_tree"]
