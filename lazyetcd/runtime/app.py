"""Application composition: state, session, controller, and key tables.

``EtcdBrowserApp`` owns everything the UI thread touches. Blocking work goes
through a single ``CommandRunner``; its results come back as queued view
updates that ``tick`` applies between key reads.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .. import clipboard
from .. import config as config_store
from ..controller import ActionController, ProfileOps, config_profile_ops
from ..debug_log import recent_lines
from ..input import KeyComboRegistry
from ..keyspace import ROOT_PATH, TreeNode, nearest_visible_index, parent_row_index, visible_rows
from ..session import InputRouter, Mode, Session
from ..store import ConnectionManager, StoreConfig, StoreFactory, create_etcd_store
from ..ui_theme import UITheme, available_theme_names, normalize_theme_name, resolve_theme
from ..watch import LiveUpdateIntegrator
from .commands import CommandRunner
from .render import build_frame, clamp_left_width, clamp_scroll
from .state import AppState
from .view_bridge import QueuedView

logger = logging.getLogger(__name__)

PAGE_STEP = 10
DETAIL_SCROLL_STEP = 3
RESIZE_STEP = 2
DEBUG_PANEL_LINES = 200
ENTER_KEYS = ("ENTER_CR", "ENTER_LF")


@dataclass(frozen=True)
class AppOptions:
    """Startup parameters resolved by the CLI."""

    store_config: StoreConfig | None
    profile_name: str = ""
    factory: StoreFactory = create_etcd_store
    profiles: ProfileOps = field(default_factory=config_profile_ops)
    theme_name: str | None = None
    no_color: bool = False
    value_style: str = "monokai"
    persist_layout: bool = True


class EtcdBrowserApp:
    """Key handling and per-tick bookkeeping, independent of the terminal."""

    def __init__(
        self,
        options: AppOptions,
        *,
        runner: CommandRunner | None = None,
        copy_text: Callable[[str], bool] = clipboard.copy_text,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.options = options
        self._monotonic = monotonic
        theme_name = normalize_theme_name(options.theme_name)
        self.theme: UITheme = resolve_theme(theme_name, no_color=options.no_color)
        self.state = AppState(theme_name=self.theme.name)
        self.view = QueuedView(
            lambda: self.theme,
            color=not options.no_color,
            value_style=options.value_style,
            monotonic=monotonic,
        )
        self.runner = runner if runner is not None else CommandRunner()
        self.columns = 80

        self.router = InputRouter(self._browsing_table(), on_terminate=lambda: True)
        self.session = Session(self.router)

        callbacks = self.view.callbacks()
        self.connection = ConnectionManager(options.factory)
        self.controller = ActionController(
            self.connection,
            self.session,
            callbacks,
            integrator=LiveUpdateIntegrator(self.session, callbacks),
            profiles=options.profiles,
            copy_text=copy_text,
        )
        self.router.register_mode_table(Mode.FORM_ACTIVE, self._form_table())
        self.router.register_mode_table(Mode.CONFIRM_ACTIVE, self._confirm_table())
        self.router.register_mode_table(Mode.WATCH_ACTIVE, self._watch_table())
        self._was_busy = False

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Kick off the initial connection in the background."""
        store_config = self.options.store_config
        if store_config is None:
            self.controller.update_status_bar()
            self.controller.view.set_status("No profile configured (press p to choose one)", "warning")
            self.pump()
            return
        self._run("connecting", lambda: self.controller.connect(store_config, self.options.profile_name))

    def shutdown(self) -> None:
        self.controller.disconnect()

    def pump(self) -> None:
        """Apply queued view updates and surface crashed commands."""
        self.view.apply_pending(self.state)
        for failure in self.runner.drain_failures():
            self.controller.view.set_status(f"{failure.label} failed: {failure.error}", "error")
            self.view.apply_pending(self.state)
        if self._selection_stale():
            self._sync_selection()
            self.view.apply_pending(self.state)

    def _selection_stale(self) -> bool:
        """True when a rebuilt tree left the cursor on a node other than the selection."""
        if self.runner.busy or self.session.mode is not Mode.BROWSING:
            return False
        node = self._current_node()
        cursor_key = node.entry.key if node is not None and node.entry is not None else None
        return cursor_key != self.session.selected_key

    def tick(self) -> None:
        """Per-loop bookkeeping run on the UI thread between key reads."""
        busy = self.runner.busy
        if not busy:
            self.controller.integrator.drain()
        self.pump()
        label = self.runner.label if busy else ""
        if label != self.state.busy_label:
            self.state.busy_label = label
            self.state.dirty = True
        if self._was_busy and not busy:
            self.state.dirty = True
        self._was_busy = busy
        if self.state.status_message and self._monotonic() >= self.state.status_message_until:
            self.state.status_message = ""
            self.state.dirty = True

    def frame(self, width: int, height: int, busy_frame: int = 0) -> list[str]:
        state = self.state
        state.left_width = clamp_left_width(width, state.left_width)
        tree_rows = max(1, height - 3)
        state.tree_start = clamp_scroll(state.selected_idx, state.tree_start, len(state.rows), tree_rows)
        debug = recent_lines(DEBUG_PANEL_LINES) if state.show_debug else None
        return build_frame(state, width, height, self.theme, debug_lines=debug, busy_frame=busy_frame)

    # -- key entry ---------------------------------------------------------

    def handle_key(self, key: str) -> bool:
        """Process one key token; returns ``True`` when the app should exit."""
        if not key:
            return False
        if self.runner.busy:
            # Only the hard-quit key is honored while a command runs.
            return key in self.router.terminate_keys
        if self.state.show_help and key not in self.router.terminate_keys:
            self.state.show_help = False
            self.state.dirty = True
            return False
        result = self.router.dispatch(key)
        self.pump()
        return result is True

    def _run(self, label: str, command: Callable[[], object]) -> bool:
        if not self.runner.submit(label, command):
            logger.debug("dropped %s: runner busy", label)
            return False
        self.state.busy_label = self.runner.label
        self.state.dirty = True
        self.pump()
        return True

    # -- tree navigation ---------------------------------------------------

    def _rebuild_rows(self, target_path: str | None = None) -> None:
        state = self.state
        current = state.current_row
        path = target_path or (current.path if current else ROOT_PATH)
        state.rows = visible_rows(state.root, state.expanded, state.expand_all)
        state.selected_idx = nearest_visible_index(state.rows, path)
        state.dirty = True

    def _current_node(self) -> TreeNode | None:
        row = self.state.current_row
        return row.node if row is not None else None

    def _sync_selection(self) -> None:
        node = self._current_node()
        if node is not None and node.entry is not None and node.entry.has_lease:
            self._run("loading", lambda: self.controller.select_node(node))
            return
        self.controller.select_node(node)

    def move(self, delta: int) -> None:
        state = self.state
        if not state.rows:
            return
        target = max(0, min(len(state.rows) - 1, state.selected_idx + delta))
        if target == state.selected_idx:
            return
        state.selected_idx = target
        state.dirty = True
        self._sync_selection()

    def _materialize_expand_all(self) -> None:
        state = self.state
        if not state.expand_all:
            return
        state.expanded = {node.path for node in state.root.iter_nodes() if node.children and node.path != ROOT_PATH}
        state.expand_all = False

    def expand(self) -> None:
        node = self._current_node()
        if node is None or not node.children or node.path == ROOT_PATH:
            return
        self._materialize_expand_all()
        if node.path in self.state.expanded:
            self.move(1)
            return
        self.state.expanded.add(node.path)
        self._rebuild_rows(node.path)

    def collapse(self) -> None:
        state = self.state
        node = self._current_node()
        if node is None:
            return
        self._materialize_expand_all()
        if node.children and node.path in state.expanded:
            state.expanded.discard(node.path)
            self._rebuild_rows(node.path)
            return
        parent = parent_row_index(state.rows, state.selected_idx)
        if parent is not None:
            self.move(parent - state.selected_idx)

    def toggle(self) -> None:
        node = self._current_node()
        if node is None or not node.children or node.path == ROOT_PATH:
            return
        self._materialize_expand_all()
        if node.path in self.state.expanded:
            self.state.expanded.discard(node.path)
        else:
            self.state.expanded.add(node.path)
        self._rebuild_rows(node.path)

    def create_prefix(self) -> str:
        """Key prefix for a new key: the branch under the cursor, or the leaf's parent."""
        node = self._current_node()
        if node is None or node.path == ROOT_PATH:
            return "/"
        if node.children or node.entry is None:
            return node.path.rstrip("/") + "/"
        parent, _sep, _name = node.path.rpartition("/")
        return (parent or "") + "/"

    # -- panes and layout --------------------------------------------------

    def scroll_details(self, delta: int) -> None:
        state = self.state
        state.detail_start = max(0, min(len(state.detail_lines), state.detail_start + delta))
        state.dirty = True

    def resize(self, delta: int) -> None:
        state = self.state
        state.left_width = clamp_left_width(self.columns, state.left_width + delta)
        state.dirty = True
        if self.options.persist_layout:
            config_store.save_left_pane_percent(self.columns, state.left_width)

    def cycle_theme(self) -> None:
        names = available_theme_names()
        current = normalize_theme_name(self.state.theme_name)
        idx = names.index(current) if current in names else -1
        name = names[(idx + 1) % len(names)]
        self.theme = resolve_theme(name, no_color=self.options.no_color)
        self.state.theme_name = name
        self.controller.view.set_status(f"Theme: {name}", "info")
        if self.options.persist_layout:
            config_store.save_theme_name(name)
        self._sync_selection()

    def toggle_help(self) -> None:
        self.state.show_help = not self.state.show_help
        self.state.dirty = True

    def toggle_debug(self) -> None:
        self.state.show_debug = not self.state.show_debug
        self.state.dirty = True

    def escape(self) -> None:
        if self.state.show_debug:
            self.toggle_debug()
            return
        if self.controller.last_prefix:
            self._run("loading", self.controller.clear_search)

    # -- key tables --------------------------------------------------------

    def _browsing_table(self) -> KeyComboRegistry:
        table = KeyComboRegistry(name="browsing")

        table.bind("q")(lambda: True)
        table.bind("?")(self.toggle_help)
        table.bind("F1")(self.toggle_debug)
        table.bind("UP", "k")(lambda: self.move(-1))
        table.bind("DOWN", "j")(lambda: self.move(1))
        table.bind("PAGE_UP")(lambda: self.move(-PAGE_STEP))
        table.bind("PAGE_DOWN")(lambda: self.move(PAGE_STEP))
        table.bind("HOME", "g")(lambda: self.move(-len(self.state.rows)))
        table.bind("END", "G")(lambda: self.move(len(self.state.rows)))
        table.bind("RIGHT", "l")(self.expand)
        table.bind("LEFT", "h")(self.collapse)
        table.bind(*ENTER_KEYS, " ")(self.toggle)
        table.bind("J")(lambda: self.scroll_details(DETAIL_SCROLL_STEP))
        table.bind("K")(lambda: self.scroll_details(-DETAIL_SCROLL_STEP))
        table.bind("<")(lambda: self.resize(-RESIZE_STEP))
        table.bind(">")(lambda: self.resize(RESIZE_STEP))
        table.bind("T")(self.cycle_theme)
        table.bind("ESC")(self.escape)

        table.bind("/")(self.controller_call(lambda c: c.begin_search()))
        table.bind("n")(self.controller_call(lambda c: c.begin_create(self.create_prefix())))
        table.bind("e")(self.controller_call(lambda c: c.begin_edit()))
        table.bind("d")(self.controller_call(lambda c: c.begin_delete()))
        table.bind("c")(self.controller_call(lambda c: c.copy_selected_value()))
        table.bind("p")(self.controller_call(lambda c: c.begin_profile()))
        table.bind("w")(lambda: self._run("watching", lambda: self.controller.watch()))
        table.bind("r")(lambda: self._run("refreshing", self.controller.refresh))
        return table

    def controller_call(self, action: Callable[[ActionController], object]) -> Callable[[], None]:
        """Bind ``action`` to run inline on the UI thread against the controller."""

        def handler() -> None:
            action(self.controller)

        return handler

    def _form_table(self) -> KeyComboRegistry:
        table = KeyComboRegistry(name="form", fallback=self._form_insert)

        def edit(method: str) -> Callable[[], None]:
            def handler() -> None:
                form = self.controller.form
                if form is not None:
                    getattr(form, method)()
                    self.state.dirty = True

            return handler

        table.bind("ESC")(self.controller.cancel_form)
        table.bind(*ENTER_KEYS)(lambda: self._run("saving", self.controller.submit_form))
        table.bind("TAB", "DOWN")(edit("next_field"))
        table.bind("SHIFT_TAB", "UP")(edit("prev_field"))
        table.bind("BACKSPACE")(edit("backspace"))
        table.bind("CTRL_U")(edit("clear_field"))
        table.bind("CTRL_W")(edit("delete_word"))
        table.bind("CTRL_N")(edit("insert_newline"))
        return table

    def _form_insert(self, key: str) -> bool | None:
        form = self.controller.form
        if form is None or len(key) != 1 or not key.isprintable():
            return None
        form.insert(key)
        self.state.dirty = True
        return False

    def _confirm_table(self) -> KeyComboRegistry:
        table = KeyComboRegistry(name="confirm")
        table.bind("y", "Y", *ENTER_KEYS)(lambda: self._run("deleting", self.controller.confirm_delete))
        table.bind("n", "N", "ESC", "q")(self.controller.cancel_confirm)
        return table

    def _watch_table(self) -> KeyComboRegistry:
        table = KeyComboRegistry(name="watch")
        table.bind("ESC", "q")(self.controller.close_watch)
        table.bind("w")(self._rewatch)
        table.bind("UP", "k")(lambda: self.scroll_watch(-1))
        table.bind("DOWN", "j")(lambda: self.scroll_watch(1))
        table.bind("PAGE_UP")(lambda: self.scroll_watch(-PAGE_STEP))
        table.bind("PAGE_DOWN")(lambda: self.scroll_watch(PAGE_STEP))
        table.bind("END", "G")(self.follow_watch)
        table.bind("F1")(self.toggle_debug)
        return table

    def _rewatch(self) -> None:
        key = self.controller.integrator.key or self.state.watch_key
        self._run("watching", lambda: self.controller.watch(key))

    def scroll_watch(self, delta: int) -> None:
        state = self.state
        if state.watch_follow:
            state.watch_start = max(0, len(state.watch_lines) - 1)
        state.watch_follow = False
        state.watch_start = max(0, min(len(state.watch_lines) - 1, state.watch_start + delta))
        state.dirty = True

    def follow_watch(self) -> None:
        self.state.watch_follow = True
        self.state.dirty = True


def initial_left_width(columns: int) -> int:
    """Tree pane width from the saved percentage, else 40% of the terminal."""
    percent = config_store.load_left_pane_percent()
    if percent is None:
        percent = 40.0
    return clamp_left_width(columns, int(columns * percent / 100))


__all__ = ["AppOptions", "EtcdBrowserApp", "initial_left_width"]
