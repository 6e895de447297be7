"""Visible-row projection of a keyspace tree for the tree pane.

Rows are rebuilt from the current tree and the set of expanded paths; they
never hold state of their own, so a rebuild after refresh is always safe.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .projector import ROOT_PATH, ancestor_paths, normalize_path
from .types import TreeNode


@dataclass(frozen=True)
class TreeRow:
    """One rendered row: a node and its indentation depth."""

    node: TreeNode
    depth: int

    @property
    def path(self) -> str:
        return self.node.path


def visible_rows(root: TreeNode, expanded: set[str], expand_all: bool = False) -> list[TreeRow]:
    """Flatten ``root`` depth-first honoring ``expanded``.

    The root row is always present and always open. ``expand_all`` opens
    every branch, which search results use so matches are visible at once.
    """
    rows: list[TreeRow] = [TreeRow(root, 0)]
    stack = [(child, 1) for child in reversed(root.children)]
    while stack:
        node, depth = stack.pop()
        rows.append(TreeRow(node, depth))
        if node.children and (expand_all or node.path in expanded):
            stack.extend((child, depth + 1) for child in reversed(node.children))
    return rows


def row_index_for_path(rows: list[TreeRow], path: str) -> int | None:
    """Return row index showing ``path`` or ``None`` when not visible."""
    target = normalize_path(path)
    for idx, row in enumerate(rows):
        if row.path == target:
            return idx
    return None


def nearest_visible_index(rows: list[TreeRow], path: str) -> int:
    """Return row for ``path`` or its closest visible ancestor, else ``0``."""
    exact = row_index_for_path(rows, path)
    if exact is not None:
        return exact
    for ancestor in reversed(ancestor_paths(path)):
        idx = row_index_for_path(rows, ancestor)
        if idx is not None:
            return idx
    return 0


def parent_row_index(rows: list[TreeRow], from_idx: int) -> int | None:
    """Return nearest row above ``from_idx`` with a smaller depth."""
    if not (0 <= from_idx < len(rows)):
        return None
    current_depth = rows[from_idx].depth
    idx = from_idx - 1
    while idx >= 0:
        if rows[idx].depth < current_depth:
            return idx
        idx -= 1
    return None


def expand_to(expanded: set[str], paths: Iterable[str]) -> set[str]:
    """Return ``expanded`` plus every ancestor of ``paths`` so they become visible."""
    out = set(expanded)
    for path in paths:
        for ancestor in ancestor_paths(path):
            if ancestor != ROOT_PATH:
                out.add(ancestor)
    return out


def prune_expanded(root: TreeNode, expanded: set[str]) -> set[str]:
    """Drop expanded paths that no longer exist or no longer have children."""
    kept: set[str] = set()
    for path in expanded:
        node = root.find(path)
        if node is not None and node.children:
            kept.add(path)
    return kept


__all__ = [
    "TreeRow",
    "visible_rows",
    "row_index_for_path",
    "nearest_visible_index",
    "parent_row_index",
    "expand_to",
    "prune_expanded",
]
