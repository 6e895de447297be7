"""Frame composition tests for the terminal renderer."""

from __future__ import annotations

import os
import unittest

from lazyetcd.ansi import display_width, strip_ansi
from lazyetcd.forms import create_form
from lazyetcd.keyspace import Entry, project, visible_rows
from lazyetcd.runtime.render import (
    build_frame,
    build_status_line,
    clamp_left_width,
    clamp_scroll,
    write_frame,
)
from lazyetcd.runtime.state import AppState
from lazyetcd.ui_theme import DEFAULT_THEME, PLAIN_THEME


def _state() -> AppState:
    root = project([Entry("/svc/a", "1"), Entry("/svc/b", "2"), Entry("/top", "3")])
    state = AppState(root=root, expanded={"/svc"})
    state.rows = visible_rows(root, state.expanded)
    state.left_width = 24
    return state


class LayoutHelperTests(unittest.TestCase):
    def test_clamp_left_width_leaves_room_for_details(self) -> None:
        self.assertEqual(clamp_left_width(100, 90), 79)
        self.assertEqual(clamp_left_width(100, 2), 16)
        self.assertEqual(clamp_left_width(20, 15), 10)

    def test_clamp_scroll_keeps_selection_visible(self) -> None:
        self.assertEqual(clamp_scroll(12, 0, 50, 10), 3)
        self.assertEqual(clamp_scroll(2, 5, 50, 10), 2)
        self.assertEqual(clamp_scroll(0, 5, 3, 10), 0)

    def test_status_line_right_aligns_help_hint(self) -> None:
        line = build_status_line("Connected", 30)
        self.assertEqual(len(line), 30)
        self.assertTrue(line.startswith("Connected"))
        self.assertTrue(line.endswith("│ ? Help"))


class BuildFrameTests(unittest.TestCase):
    def test_frame_has_exact_height_and_width(self) -> None:
        state = _state()
        for theme in (DEFAULT_THEME, PLAIN_THEME):
            with self.subTest(theme=theme.name):
                lines = build_frame(state, 80, 20, theme)
                self.assertEqual(len(lines), 20)
                for line in lines:
                    self.assertEqual(display_width(line), 80)

    def test_tree_pane_lists_rows_and_marks_selection(self) -> None:
        state = _state()
        state.selected_idx = 2

        lines = [strip_ansi(line) for line in build_frame(state, 80, 12, PLAIN_THEME)]

        self.assertIn("Keys", lines[0])
        self.assertTrue(lines[1].startswith("etcd"))
        self.assertTrue(lines[3].startswith(">     a"))

    def test_details_placeholder_and_status_bar(self) -> None:
        state = _state()
        state.status_bar = "Connected | Leader: n1"
        state.status_message = "Loaded 3 keys"

        lines = [strip_ansi(line) for line in build_frame(state, 80, 12, PLAIN_THEME)]

        self.assertIn("Select a key to view details", lines[1])
        self.assertTrue(lines[-2].startswith("Loaded 3 keys"))
        self.assertTrue(lines[-1].startswith("Connected | Leader: n1"))

    def test_form_overlay_shows_fields(self) -> None:
        state = _state()
        state.form = create_form("/svc/")

        text = "\n".join(strip_ansi(line) for line in build_frame(state, 80, 20, PLAIN_THEME))

        self.assertIn("Create key", text)
        self.assertIn("Key:", text)
        self.assertIn("/svc/▏", text)
        self.assertIn("TTL (seconds):", text)

    def test_multiline_value_spans_rows(self) -> None:
        state = _state()
        state.form = create_form("/svc/")
        state.form.fields[1].value = "first\nsecond"
        state.form.focus = 1

        lines = [strip_ansi(line) for line in build_frame(state, 80, 24, PLAIN_THEME)]

        value_row = next(idx for idx, line in enumerate(lines) if "Value:" in line)
        self.assertIn("first", lines[value_row])
        self.assertNotIn("second", lines[value_row])
        self.assertIn("second▏", lines[value_row + 1])
        self.assertIn("Ctrl+N newline", "\n".join(lines))

    def test_confirm_overlay(self) -> None:
        state = _state()
        state.confirm_prompt = "Delete key: /svc/a?"

        text = "\n".join(strip_ansi(line) for line in build_frame(state, 80, 20, PLAIN_THEME))

        self.assertIn("Delete key: /svc/a?", text)
        self.assertIn("y/Enter", text)

    def test_watch_overlay_follows_latest_lines(self) -> None:
        state = _state()
        state.watch_key = "/svc/a"
        state.watch_lines = [f"line {idx}" for idx in range(100)]

        text = "\n".join(strip_ansi(line) for line in build_frame(state, 80, 20, PLAIN_THEME))

        self.assertIn("Watch: /svc/a", text)
        self.assertIn("line 99", text)
        self.assertNotIn("line 88", text)

    def test_help_overlay_wins_over_form(self) -> None:
        state = _state()
        state.form = create_form()
        state.show_help = True

        text = "\n".join(strip_ansi(line) for line in build_frame(state, 80, 40, PLAIN_THEME))

        self.assertIn("NAVIGATION", text)
        self.assertNotIn("Create key", text)

    def test_debug_panel_replaces_details(self) -> None:
        state = _state()
        state.show_debug = True

        text = "\n".join(strip_ansi(line) for line in build_frame(state, 80, 12, PLAIN_THEME, debug_lines=["INFO hello"]))

        self.assertIn("Debug", text)
        self.assertIn("INFO hello", text)

    def test_busy_label_shows_spinner(self) -> None:
        state = _state()
        state.busy_label = "refreshing"

        lines = [strip_ansi(line) for line in build_frame(state, 80, 12, PLAIN_THEME)]

        self.assertIn("refreshing...", lines[-2])

    def test_write_frame_homes_cursor(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            write_frame(["a", "b"], write_fd)
            data = os.read(read_fd, 1024)
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self.assertTrue(data.startswith(b"\x1b[H"))
        self.assertIn(b"a\x1b[0m\r\nb\x1b[0m", data)


if __name__ == "__main__":
    unittest.main()
