"""Key-driven behavior of ``EtcdBrowserApp`` without a terminal.

Commands run inline (``CommandRunner(spawn=False)``) against an in-memory
store, so every key press is fully applied by the time ``handle_key``
returns.
"""

from __future__ import annotations

import unittest
from unittest import mock

from lazyetcd.controller import NOT_CONNECTED_HINT, ProfileOps
from lazyetcd.errors import ConnectionFailedError
from lazyetcd.runtime import AppOptions, CommandRunner, EtcdBrowserApp
from lazyetcd.session import Mode
from lazyetcd.store import InMemoryStore, StoreConfig

MEMORY_CONFIG = StoreConfig(endpoints=("memory://test",))


def _profiles() -> ProfileOps:
    return ProfileOps(
        resolve=lambda name: MEMORY_CONFIG,
        names=lambda: ["test"],
        remember=lambda name: None,
    )


class AppTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.now = 0.0
        self.copied: list[str] = []
        self.store = InMemoryStore(clock=lambda: 1000.0, leader="n1")
        self.store.put("/svc/a", "1")
        self.store.put("/svc/b", '{"x": 1}')
        self.store.put("/top", "3")
        self.app = self.make_app(MEMORY_CONFIG)

    def make_app(self, store_config: StoreConfig | None, factory=None) -> EtcdBrowserApp:
        options = AppOptions(
            store_config=store_config,
            profile_name="test",
            factory=factory or (lambda _config: self.store),
            profiles=_profiles(),
            no_color=True,
            persist_layout=False,
        )

        def copy_text(text: str) -> bool:
            self.copied.append(text)
            return True

        app = EtcdBrowserApp(
            options,
            runner=CommandRunner(spawn=False),
            copy_text=copy_text,
            monotonic=lambda: self.now,
        )
        self.addCleanup(app.shutdown)
        return app

    def press(self, *keys: str) -> None:
        for key in keys:
            self.app.handle_key(key)

    def row_paths(self) -> list[str]:
        return [row.path for row in self.app.state.rows]

    @property
    def selected_path(self) -> str:
        return self.app.state.rows[self.app.state.selected_idx].path


class StartupTests(AppTestCase):
    def test_start_connects_and_loads_tree(self) -> None:
        self.app.start()
        state = self.app.state

        self.assertEqual(self.row_paths(), ["/", "/svc", "/top"])
        self.assertEqual(state.status_message, "Connected to test")
        self.assertTrue(state.status_bar.startswith("Connected [test] | Leader: n1 | Keys: 3"))
        self.assertEqual(state.busy_label, "")

    def test_start_without_profile_shows_hint(self) -> None:
        self.app = self.make_app(None)
        self.app.start()

        self.assertIn("No profile configured", self.app.state.status_message)
        self.assertEqual(self.app.state.status_bar, NOT_CONNECTED_HINT)

    def test_connection_failure_is_reported(self) -> None:
        def broken(_config: StoreConfig):
            raise ConnectionFailedError("refused")

        self.app = self.make_app(MEMORY_CONFIG, factory=broken)
        self.app.start()

        self.assertEqual(self.app.state.status_level, "error")
        self.assertIn("refused", self.app.state.status_message)
        self.assertEqual(self.app.state.status_bar, NOT_CONNECTED_HINT)


class NavigationTests(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.app.start()

    def test_expand_move_and_collapse(self) -> None:
        self.press("j", "l")
        self.assertEqual(self.row_paths(), ["/", "/svc", "/svc/a", "/svc/b", "/top"])
        self.assertEqual(self.selected_path, "/svc")

        self.press("j")
        self.assertEqual(self.selected_path, "/svc/a")
        self.assertEqual(self.app.state.detail_lines[0], "Key: /svc/a")

        self.press("h")
        self.assertEqual(self.selected_path, "/svc")
        self.press("h")
        self.assertEqual(self.row_paths(), ["/", "/svc", "/top"])

    def test_enter_toggles_branch(self) -> None:
        self.press("j", "ENTER_CR")
        self.assertIn("/svc/a", self.row_paths())
        self.press("ENTER_CR")
        self.assertNotIn("/svc/a", self.row_paths())

    def test_home_and_end(self) -> None:
        self.press("G")
        self.assertEqual(self.selected_path, "/top")
        self.press("g")
        self.assertEqual(self.selected_path, "/")

    def test_branch_selection_shows_placeholder(self) -> None:
        self.press("G", "k")
        self.assertEqual(self.selected_path, "/svc")
        self.assertEqual(self.app.state.detail_lines[0], "Select a key to view details")

    def test_create_prefix_follows_cursor(self) -> None:
        self.assertEqual(self.app.create_prefix(), "/")
        self.press("j")
        self.assertEqual(self.app.create_prefix(), "/svc/")
        self.press("l", "j")
        self.assertEqual(self.app.create_prefix(), "/svc/")

    def test_copy_selected_value(self) -> None:
        self.press("G", "c")
        self.assertEqual(self.copied, ["3"])
        self.assertEqual(self.app.state.status_message, "Copied value of /top")

    def test_resize_and_theme(self) -> None:
        self.app.state.left_width = 40
        self.press(">")
        self.assertEqual(self.app.state.left_width, 42)

        previous = self.app.state.theme_name
        self.press("T")
        self.assertNotEqual(self.app.state.theme_name, previous)
        self.assertTrue(self.app.state.status_message.startswith("Theme: "))

    def test_refresh_picks_up_external_writes(self) -> None:
        self.store.put("/new", "x")
        self.press("r")
        self.assertIn("/new", self.row_paths())


class FormAndConfirmTests(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.app.start()

    def test_search_then_escape_clears_filter(self) -> None:
        self.press("/")
        self.assertEqual(self.app.session.mode, Mode.FORM_ACTIVE)
        self.assertEqual(self.app.state.form.value("prefix"), "/")

        self.press("s", "v", "c", "ENTER_CR")

        state = self.app.state
        self.assertIsNone(state.form)
        self.assertTrue(state.expand_all)
        self.assertEqual(self.row_paths(), ["/", "/svc", "/svc/a", "/svc/b"])
        self.assertEqual(state.status_message, "Search: /svc (2 keys)")
        self.assertEqual(self.app.session.mode, Mode.BROWSING)

        self.press("ESC")
        self.assertFalse(state.expand_all)
        self.assertEqual(self.row_paths(), ["/", "/svc", "/top"])

    def test_search_moves_cursor_to_root_and_keys_act_on_next_pick(self) -> None:
        self.press("j", "l", "j")
        self.assertEqual(self.app.session.selected_key, "/svc/a")

        self.press("/", "s", "v", "c", "ENTER_CR")

        self.assertEqual(self.selected_path, "/")
        self.assertIsNone(self.app.session.selected_key)
        self.assertEqual(self.app.state.detail_lines[0], "Search")

        self.press("j", "j", "d")
        self.assertEqual(self.selected_path, "/svc/a")
        self.assertEqual(self.app.state.confirm_prompt, "Delete key: /svc/a?")

    def test_delete_reselects_entry_under_landing_cursor(self) -> None:
        self.store.put("/svc", "root")
        self.press("r", "j", "l", "j", "d", "y")

        self.assertEqual(self.store.count(), 3)
        self.assertEqual(self.selected_path, "/svc")
        self.assertEqual(self.app.session.selected_key, "/svc")
        self.assertEqual(self.app.state.detail_lines[0], "Key: /svc")

        self.press("d")
        self.assertEqual(self.app.state.confirm_prompt, "Delete key: /svc?")

    def test_form_keys_do_not_reach_browsing_table(self) -> None:
        self.press("n")
        self.press("q", "j")

        self.assertEqual(self.app.state.form.value("key"), "/qj")
        self.assertEqual(self.app.state.selected_idx, 0)

    def test_create_key_with_form(self) -> None:
        self.press("j", "n")
        self.assertEqual(self.app.state.form.value("key"), "/svc/")
        self.press("c", "TAB", "v", "ENTER_LF")

        self.assertEqual(self.store.get("/svc/c").value, "v")
        self.assertEqual(self.selected_path, "/svc/c")
        self.assertEqual(self.app.state.status_message, "Saved: /svc/c")

    def test_create_key_with_multiline_value(self) -> None:
        self.press("n", "m", "TAB", "a", "CTRL_N", "b", "ENTER_CR")

        self.assertEqual(self.store.get("/m").value, "a\nb")
        self.assertEqual(self.app.session.mode, Mode.BROWSING)

    def test_newline_key_ignored_in_single_line_field(self) -> None:
        self.press("n", "x", "CTRL_N")

        self.assertEqual(self.app.state.form.value("key"), "/x")
        self.assertEqual(self.app.session.mode, Mode.FORM_ACTIVE)

    def test_invalid_ttl_keeps_form_open(self) -> None:
        self.press("n", "x", "TAB", "v", "TAB", "-", "1", "ENTER_CR")

        form = self.app.state.form
        self.assertIsNotNone(form)
        self.assertIn("greater than zero", form.error)
        self.assertEqual(self.app.session.mode, Mode.FORM_ACTIVE)

        self.press("ESC")
        self.assertIsNone(self.app.state.form)
        self.assertEqual(self.app.session.mode, Mode.BROWSING)

    def test_delete_confirmed(self) -> None:
        self.press("G", "d")
        self.assertEqual(self.app.state.confirm_prompt, "Delete key: /top?")

        self.press("y")

        self.assertIsNone(self.app.state.confirm_prompt)
        self.assertEqual(self.store.count(), 2)
        self.assertEqual(self.app.state.status_message, "Deleted: /top")

    def test_delete_cancelled(self) -> None:
        self.press("G", "d", "n")

        self.assertIsNone(self.app.state.confirm_prompt)
        self.assertEqual(self.store.get("/top").value, "3")
        self.assertEqual(self.app.session.mode, Mode.BROWSING)


class WatchTests(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.app.start()
        self.press("j", "l", "j", "w")

    def test_watch_streams_events_until_escape(self) -> None:
        state = self.app.state
        self.assertEqual(state.watch_key, "/svc/a")
        self.assertEqual(state.watch_lines[:2], ["Started watching /svc/a", "Current value: 1"])

        self.store.put("/svc/a", "2")
        self.app.tick()
        self.assertTrue(state.watch_lines[-1].endswith("/svc/a = 2"))

        self.press("ESC")
        self.assertIsNone(state.watch_key)
        self.assertEqual(self.app.session.mode, Mode.BROWSING)
        self.assertEqual(self.store.watcher_count, 0)

    def test_navigation_keys_scroll_watch_log(self) -> None:
        self.press("k")
        self.assertFalse(self.app.state.watch_follow)
        self.assertEqual(self.selected_path, "/svc/a")

        self.press("G")
        self.assertTrue(self.app.state.watch_follow)


class KeyHandlingTests(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.app.start()

    def test_quit_keys(self) -> None:
        self.assertTrue(self.app.handle_key("q"))
        self.assertTrue(self.app.handle_key("CTRL_C"))
        self.assertFalse(self.app.handle_key(""))

    def test_help_closes_on_any_key(self) -> None:
        self.press("?")
        self.assertTrue(self.app.state.show_help)

        self.press("j")
        self.assertFalse(self.app.state.show_help)
        self.assertEqual(self.app.state.selected_idx, 0)

    def test_busy_runner_only_honors_terminate(self) -> None:
        with mock.patch.object(CommandRunner, "busy", new_callable=mock.PropertyMock, return_value=True):
            self.assertFalse(self.app.handle_key("j"))
            self.assertFalse(self.app.handle_key("q"))
            self.assertTrue(self.app.handle_key("CTRL_C"))
        self.assertEqual(self.app.state.selected_idx, 0)

    def test_crashed_command_becomes_status(self) -> None:
        def explode() -> None:
            raise RuntimeError("kaput")

        self.app._run("exploding", explode)

        self.assertEqual(self.app.state.status_message, "exploding failed: kaput")
        self.assertEqual(self.app.state.status_level, "error")

    def test_status_message_expires(self) -> None:
        self.assertTrue(self.app.state.status_message)
        self.now = 60.0
        self.app.tick()
        self.assertEqual(self.app.state.status_message, "")

    def test_frame_fits_terminal(self) -> None:
        lines = self.app.frame(60, 15)
        self.assertEqual(len(lines), 15)


if __name__ == "__main__":
    unittest.main()
