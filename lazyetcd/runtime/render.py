"""Frame composition for the split tree/details terminal view.

``build_frame`` is pure: it turns an ``AppState`` snapshot into exactly
``height`` styled lines of ``width`` columns. ``write_frame`` is the only
function here that touches the terminal.
"""

from __future__ import annotations

import os

from ..ansi import clip_ansi_line, display_width, pad_ansi_line, slice_ansi_line, wrap_ansi_line
from ..forms import FormField
from ..keyspace import format_tree_row
from ..ui_theme import UITheme, status_color
from .state import AppState

MIN_LEFT_WIDTH = 16
MIN_RIGHT_WIDTH = 20
FORM_VALUE_ROWS = 4
BUSY_FRAMES: tuple[str, ...] = ("|", "/", "-", "\\")

HELP_SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "NAVIGATION",
        (
            ("↑/↓ j/k", "move"),
            ("←/→ h/l", "collapse / expand"),
            ("Enter Space", "toggle branch"),
            ("g/G PgUp/PgDn", "jump"),
            ("J/K", "scroll details"),
            ("< >", "resize tree pane"),
        ),
    ),
    (
        "KEYS",
        (
            ("n", "new key (optional TTL)"),
            ("e", "edit selected key"),
            ("d", "delete selected key"),
            ("w", "watch selected key"),
            ("c", "copy value to clipboard"),
            ("/", "search by prefix"),
            ("Esc", "clear search"),
            ("r", "refresh"),
        ),
    ),
    (
        "SESSION",
        (
            ("p", "switch profile"),
            ("T", "cycle theme"),
            ("F1", "debug log"),
            ("?", "this help"),
            ("q Ctrl+C", "quit"),
        ),
    ),
)


def clamp_left_width(total_width: int, left_width: int) -> int:
    """Keep the tree pane between its minimum and leaving room for details."""
    if total_width <= MIN_LEFT_WIDTH + MIN_RIGHT_WIDTH + 1:
        return max(1, total_width // 2)
    return max(MIN_LEFT_WIDTH, min(left_width, total_width - MIN_RIGHT_WIDTH - 1))


def clamp_scroll(selected: int, start: int, total: int, rows: int) -> int:
    """Return a scroll offset that keeps ``selected`` inside a ``rows`` window."""
    rows = max(1, rows)
    if selected < start:
        start = selected
    elif selected >= start + rows:
        start = selected - rows + 1
    return max(0, min(start, max(0, total - rows)))


def selected_with_ansi(text: str, width: int, theme: UITheme) -> str:
    """Pad ``text`` to ``width`` and mark it selected, keeping its colors."""
    if not theme.reverse:
        return pad_ansi_line(f"> {text}", width)
    padded = pad_ansi_line(text, width, theme.reset)
    return theme.reverse + padded.replace("\033[0m", "\033[0;7m") + theme.reset


def build_status_line(left_text: str, width: int, right_text: str = "│ ? Help") -> str:
    usable = max(1, width)
    if usable <= len(right_text):
        return right_text[-usable:]
    left_limit = max(0, usable - len(right_text) - 1)
    left = left_text[:left_limit]
    gap = " " * (usable - len(left) - len(right_text))
    return f"{left}{gap}{right_text}"


def _pane_title(title: str, width: int, theme: UITheme) -> str:
    return pad_ansi_line(f"{theme.help_heading}{title}{theme.reset}", width, theme.reset)


def tree_pane_lines(state: AppState, width: int, rows: int, theme: UITheme) -> list[str]:
    title = " Keys (search) " if state.expand_all else " Keys "
    out = [_pane_title(title, width, theme)]
    body_rows = max(0, rows - 1)
    start = clamp_scroll(state.selected_idx, state.tree_start, len(state.rows), body_rows)
    for idx in range(start, start + body_rows):
        if idx >= len(state.rows):
            out.append(" " * width)
            continue
        text = format_tree_row(state.rows[idx], state.expanded, state.expand_all, theme)
        if idx == state.selected_idx:
            out.append(selected_with_ansi(text, width, theme))
            continue
        out.append(pad_ansi_line(text, width, theme.reset))
    return out


def _wrapped(lines: list[str], width: int) -> list[str]:
    out: list[str] = []
    for line in lines:
        out.extend(wrap_ansi_line(line, width))
    return out


def detail_pane_lines(
    state: AppState,
    width: int,
    rows: int,
    theme: UITheme,
    debug_lines: list[str] | None = None,
) -> list[str]:
    if state.show_debug:
        title = " Debug (F1 to close) "
        wrapped = _wrapped(debug_lines or ["(no log records yet)"], width)
        body_rows = max(0, rows - 1)
        visible = wrapped[-body_rows:] if body_rows else []
    else:
        title = " Details "
        wrapped = _wrapped(state.detail_lines, width)
        body_rows = max(0, rows - 1)
        start = max(0, min(state.detail_start, max(0, len(wrapped) - body_rows)))
        visible = wrapped[start : start + body_rows]
    out = [_pane_title(title, width, theme)]
    for idx in range(body_rows):
        text = visible[idx] if idx < len(visible) else ""
        out.append(pad_ansi_line(text, width, theme.reset))
    return out


def box_lines(title: str, body: list[str], width: int, theme: UITheme) -> list[str]:
    """Frame ``body`` in a bordered box exactly ``width`` columns wide."""
    inner = max(1, width - 4)
    border = theme.modal_border
    reset = theme.reset
    title_text = clip_ansi_line(f" {title} ", max(0, width - 4))
    top_fill = "─" * max(0, width - 3 - display_width(title_text))
    out = [f"{border}┌─{reset}{theme.modal_title}{title_text}{reset}{border}{top_fill}┐{reset}"]
    for line in body:
        out.append(f"{border}│{reset} {pad_ansi_line(line, inner, reset)} {border}│{reset}")
    out.append(f"{border}└{'─' * max(0, width - 2)}┘{reset}")
    return out


def overlay(lines: list[str], box: list[str], total_width: int, top: int, left: int, theme: UITheme) -> None:
    """Paint ``box`` over ``lines`` in place starting at ``(top, left)``."""
    if not box:
        return
    box_width = display_width(box[0])
    for offset, box_line in enumerate(box):
        row = top + offset
        if not (0 <= row < len(lines)):
            continue
        base = lines[row]
        head = pad_ansi_line(clip_ansi_line(base, left), left, theme.reset)
        tail = slice_ansi_line(base, left + box_width, max(0, total_width - left - box_width))
        lines[row] = f"{head}{theme.reset}{box_line}{theme.reset}{tail}{theme.reset}"


def _field_lines(item: FormField, focused: bool, value_width: int) -> list[str]:
    """Visible value rows of one field; the focused one shows its tail and a caret."""
    if item.multiline:
        lines = item.value.split("\n")
    else:
        lines = [item.value.replace("\n", "⏎")]
    if not focused:
        return [line[:value_width] for line in lines[:FORM_VALUE_ROWS]]
    lines = lines[-FORM_VALUE_ROWS:]
    caret = lines[-1][-(value_width - 1):] + "▏" if value_width > 1 else "▏"
    return [line[:value_width] for line in lines[:-1]] + [caret]


def form_box(state: AppState, width: int, theme: UITheme) -> list[str]:
    form = state.form
    assert form is not None
    label_width = max(len(item.label) for item in form.fields) + 1 if form.fields else 0
    inner = max(1, width - 4)
    value_width = max(1, inner - label_width - 3)
    indent = " " * (label_width + 3)
    body: list[str] = [""]
    for idx, item in enumerate(form.fields):
        focused = idx == form.focus
        marker = "›" if focused else " "
        shown = _field_lines(item, focused, value_width)
        if not item.value and item.placeholder and not focused:
            shown = [f"{theme.detail_dim}{item.placeholder}{theme.reset}"]
        label = f"{item.label}:".ljust(label_width)
        label_style = theme.form_field_active if focused else theme.detail_label
        body.append(f"{marker} {label_style}{label}{theme.reset} {shown[0]}")
        body.extend(f"{indent}{line}" for line in shown[1:])
    body.append("")
    if form.error:
        body.append(f"{theme.status_error}{form.error}{theme.reset}")
    body.append(f"{theme.help_dim}Enter submit  Tab/↑↓ field  Esc cancel{theme.reset}")
    body.append(f"{theme.help_dim}Ctrl+N newline  Ctrl+U clear{theme.reset}")
    return box_lines(form.title, body, width, theme)


def confirm_box(prompt: str, width: int, theme: UITheme) -> list[str]:
    body = ["", prompt, "", f"{theme.help_key}y/Enter{theme.reset} delete   {theme.help_key}n/Esc{theme.reset} cancel"]
    return box_lines("Confirm", body, width, theme)


def _style_watch_line(line: str, theme: UITheme) -> str:
    if line.startswith("► PUT"):
        return f"{theme.watch_put}{line}{theme.reset}"
    if line.startswith("► DELETE"):
        return f"{theme.watch_delete}{line}{theme.reset}"
    if line.startswith("Watch error"):
        return f"{theme.status_error}{line}{theme.reset}"
    return line


def watch_box(state: AppState, width: int, height: int, theme: UITheme) -> list[str]:
    inner = max(1, width - 4)
    body_rows = max(1, height - 2)
    wrapped = _wrapped([_style_watch_line(line, theme) for line in state.watch_lines], inner)
    if state.watch_follow:
        start = max(0, len(wrapped) - body_rows)
    else:
        start = max(0, min(state.watch_start, max(0, len(wrapped) - body_rows)))
    body = wrapped[start : start + body_rows]
    body.extend([""] * (body_rows - len(body)))
    return box_lines(f"Watch: {state.watch_key} (Esc to stop)", body, width, theme)


def help_box(width: int, theme: UITheme) -> list[str]:
    body: list[str] = []
    for heading, rows in HELP_SECTIONS:
        body.append(f"{theme.help_heading}{heading}{theme.reset}")
        for keys, text in rows:
            body.append(f"  {theme.help_key}{keys.ljust(14)}{theme.reset}{text}")
        body.append("")
    body.append(f"{theme.help_dim}any key closes this help{theme.reset}")
    return box_lines("Help", body, width, theme)


def status_message_line(state: AppState, width: int, theme: UITheme, busy_frame: int = 0) -> str:
    text = state.status_message
    color = status_color(theme, state.status_level) if text else ""
    line = f"{color}{text}{theme.reset}" if text else ""
    if state.busy_label:
        spinner = BUSY_FRAMES[busy_frame % len(BUSY_FRAMES)]
        line = f"{theme.status_warning}{spinner} {state.busy_label}...{theme.reset}  {line}"
    return pad_ansi_line(line, width, theme.reset)


def build_frame(
    state: AppState,
    width: int,
    height: int,
    theme: UITheme,
    debug_lines: list[str] | None = None,
    busy_frame: int = 0,
) -> list[str]:
    """Compose a full frame of ``height`` lines."""
    width = max(1, width)
    height = max(3, height)
    body_rows = height - 2
    left_width = clamp_left_width(width, state.left_width)
    right_width = max(1, width - left_width - 1)

    left = tree_pane_lines(state, left_width, body_rows, theme)
    right = detail_pane_lines(state, right_width, body_rows, theme, debug_lines)
    divider = f"{theme.divider}│{theme.reset}"
    lines = [f"{left[row]}{theme.reset}{divider}{right[row]}{theme.reset}" for row in range(body_rows)]

    if state.show_help:
        box_width = min(width, 64)
        box = help_box(box_width, theme)
        overlay(lines, box[:body_rows], width, max(0, (body_rows - len(box)) // 2), max(0, (width - box_width) // 2), theme)
    elif state.form is not None:
        box_width = min(width, max(40, width * 2 // 3))
        box = form_box(state, box_width, theme)
        overlay(lines, box[:body_rows], width, max(0, (body_rows - len(box)) // 3), max(0, (width - box_width) // 2), theme)
    elif state.confirm_prompt is not None:
        box_width = min(width, max(30, display_width(state.confirm_prompt) + 6))
        box = confirm_box(state.confirm_prompt, box_width, theme)
        overlay(lines, box, width, max(0, (body_rows - len(box)) // 2), max(0, (width - box_width) // 2), theme)
    elif state.watch_key is not None:
        box_width = max(20, width * 4 // 5) if width >= 20 else width
        box_height = max(4, body_rows * 3 // 4)
        box = watch_box(state, box_width, box_height, theme)
        overlay(lines, box[:body_rows], width, max(0, (body_rows - len(box)) // 2), max(0, (width - box_width) // 2), theme)

    lines.append(status_message_line(state, width, theme, busy_frame))
    bar = build_status_line(state.status_bar, width)
    lines.append(f"{theme.reverse}{bar}{theme.reset}")
    return lines


def write_frame(lines: list[str], fd: int) -> None:
    out = ["\033[H"]
    out.append("\r\n".join(f"{line}\033[0m" for line in lines))
    os.write(fd, "".join(out).encode("utf-8", errors="replace"))


__all__ = [
    "HELP_SECTIONS",
    "box_lines",
    "build_frame",
    "build_status_line",
    "clamp_left_width",
    "clamp_scroll",
    "detail_pane_lines",
    "overlay",
    "tree_pane_lines",
    "write_frame",
]
