from __future__ import annotations

from dataclasses import dataclass, field

from ..forms import FormState
from ..keyspace import TreeNode, TreeRow, project

MAX_WATCH_LOG_LINES = 2000
DETAILS_PLACEHOLDER = (
    "Select a key to view details",
    "",
    "Navigation:",
    "↓/↑ or j/k  move",
    "Enter       expand/collapse",
    "?           help",
    "q           quit",
)


@dataclass
class AppState:
    root: TreeNode = field(default_factory=lambda: project([]))
    expanded: set[str] = field(default_factory=set)
    expand_all: bool = False
    rows: list[TreeRow] = field(default_factory=list)
    selected_idx: int = 0
    tree_start: int = 0
    left_width: int = 40
    detail_lines: list[str] = field(default_factory=lambda: list(DETAILS_PLACEHOLDER))
    detail_start: int = 0
    status_message: str = ""
    status_level: str = "info"
    status_message_until: float = 0.0
    status_bar: str = ""
    form: FormState | None = None
    confirm_prompt: str | None = None
    watch_key: str | None = None
    watch_lines: list[str] = field(default_factory=list)
    watch_start: int = 0
    watch_follow: bool = True
    show_help: bool = False
    show_debug: bool = False
    busy_label: str = ""
    theme_name: str = "default"
    dirty: bool = True

    @property
    def current_row(self) -> TreeRow | None:
        if 0 <= self.selected_idx < len(self.rows):
            return self.rows[self.selected_idx]
        return None

    def append_watch_line(self, line: str) -> None:
        self.watch_lines.append(line)
        overflow = len(self.watch_lines) - MAX_WATCH_LOG_LINES
        if overflow > 0:
            del self.watch_lines[:overflow]
        self.dirty = True


__all__ = ["AppState", "DETAILS_PLACEHOLDER", "MAX_WATCH_LOG_LINES"]
