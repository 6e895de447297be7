"""Push surface from the core to whatever renders it."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .forms import FormState
from .keyspace import Entry, TreeNode


@dataclass(frozen=True)
class ViewCallbacks:
    """Operations the controller and watch integrator push through.

    Callbacks may be invoked off the UI thread (command worker); the
    terminal runtime marshals them back before touching its state.
    """

    show_tree: Callable[[TreeNode, str | None, bool], None]
    show_entry: Callable[[Entry | None, int | None], None]
    show_message: Callable[[str, str], None]
    set_status: Callable[[str, str], None]
    set_status_bar: Callable[[str], None]
    open_form: Callable[[FormState], None]
    close_form: Callable[[], None]
    open_confirm: Callable[[str], None]
    close_confirm: Callable[[], None]
    open_watch: Callable[[str], None]
    close_watch: Callable[[], None]
    append_watch_log: Callable[[str], None]
    clear_watch_log: Callable[[], None]


__all__ = ["ViewCallbacks"]
