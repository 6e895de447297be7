"""Column arithmetic for styled pane text.

Every helper walks the same token stream: escape sequences pass through
with zero width, everything else is measured per character.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8
WIDE_WIDTHS = frozenset({"W", "F"})


def char_display_width(ch: str, col: int) -> int:
    """Cells taken by ``ch`` when printed at column ``col``."""
    if ch == "\t":
        return TAB_STOP - col % TAB_STOP
    if unicodedata.combining(ch):
        return 0
    return 2 if unicodedata.east_asian_width(ch) in WIDE_WIDTHS else 1


def _tokens(text: str) -> Iterator[tuple[str, bool]]:
    """Yield ``(piece, is_escape)``; non-escape pieces are single characters."""
    pos = 0
    for match in ANSI_ESCAPE_RE.finditer(text):
        for ch in text[pos:match.start()]:
            yield ch, False
        yield match.group(0), True
        pos = match.end()
    for ch in text[pos:]:
        yield ch, False


def _cell(ch: str, width: int) -> str:
    return " " * width if ch == "\t" else ch


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    col = 0
    for piece, is_escape in _tokens(text):
        if not is_escape:
            col += char_display_width(piece, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """First ``max_cols`` columns of ``text``; tabs become spaces.

    A wide character that would straddle the edge is dropped. Escapes after
    the last kept cell are not copied.
    """
    if max_cols <= 0 or not text:
        return ""
    out: list[str] = []
    col = 0
    for piece, is_escape in _tokens(text):
        if col >= max_cols:
            break
        if is_escape:
            out.append(piece)
            continue
        width = char_display_width(piece, col)
        if col + width > max_cols:
            break
        out.append(_cell(piece, width))
        col += width
    return "".join(out)


def pad_ansi_line(text: str, width: int, reset: str = "") -> str:
    """``text`` clipped and space-filled to exactly ``width`` columns."""
    clipped = clip_ansi_line(text, width)
    return clipped + reset + " " * max(0, width - display_width(clipped))


def slice_ansi_line(text: str, start_cols: int, max_cols: int) -> str:
    """``max_cols`` columns of ``text`` beginning at column ``start_cols``.

    The last SGR sequence seen before the cut is replayed so the visible
    part keeps its colour.
    """
    if max_cols <= 0 or not text:
        return ""
    start_cols = max(0, start_cols)
    out: list[str] = []
    style = ""
    started = False
    col = 0
    shown = 0
    for piece, is_escape in _tokens(text):
        if shown >= max_cols:
            break
        if is_escape:
            if started:
                out.append(piece)
            elif piece.endswith("m"):
                style = piece
            continue
        width = char_display_width(piece, col)
        col += width
        if col <= start_cols:
            continue
        if not started:
            started = True
            if style:
                out.append(style)
        if shown + width > max_cols:
            break
        out.append(_cell(piece, width))
        shown += width
    return "".join(out)


def wrap_ansi_line(text: str, width: int) -> list[str]:
    """Split ``text`` into rows of at most ``width`` columns."""
    if width <= 0 or not text:
        return [""]
    rows: list[str] = []
    row: list[str] = []
    col = 0
    for piece, is_escape in _tokens(text):
        if is_escape:
            row.append(piece)
            continue
        cells = char_display_width(piece, col)
        if row and col + cells > width:
            rows.append("".join(row))
            row = []
            col = 0
            cells = char_display_width(piece, col)
        row.append(_cell(piece, cells))
        col += cells
    rows.append("".join(row))
    return rows


__all__ = [
    "ANSI_ESCAPE_RE",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "pad_ansi_line",
    "slice_ansi_line",
    "strip_ansi",
    "wrap_ansi_line",
]
