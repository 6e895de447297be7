"""Formatting helpers for tree-pane rows."""

from __future__ import annotations

from ..ui_theme import DEFAULT_THEME, UITheme
from .types import NodeKind
from .rows import TreeRow

ROOT_LABEL = "etcd"


def format_tree_row(
    row: TreeRow,
    expanded: set[str],
    expand_all: bool = False,
    theme: UITheme | None = None,
) -> str:
    """Render one tree row as ANSI-styled display text."""
    active_theme = theme or DEFAULT_THEME
    reset = active_theme.reset
    node = row.node
    if row.depth == 0:
        return f"{active_theme.tree_root}{ROOT_LABEL}{reset}"

    indent = "  " * (row.depth - 1)
    marker_color = active_theme.tree_marker
    if node.children:
        is_open = expand_all or node.path in expanded
        marker = "▾ " if is_open else "▸ "
    else:
        marker = "  "

    kind = node.kind
    if kind is NodeKind.BRANCH:
        return f"{indent}{marker_color}{marker}{reset}{active_theme.tree_branch}{node.name}/{reset}"
    if kind is NodeKind.BRANCH_AND_LEAF:
        # Value-bearing directory: show both the value colour and the slash.
        return f"{indent}{marker_color}{marker}{reset}{active_theme.tree_branch_leaf}{node.name}{reset}/"
    return f"{indent}{marker}{active_theme.tree_leaf}{node.name}{reset}"


__all__ = ["ROOT_LABEL", "format_tree_row"]
