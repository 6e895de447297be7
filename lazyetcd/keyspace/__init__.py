"""Keyspace projection: flat store keys to a navigable tree.

This package contains non-UI tree primitives:
- entry and node value types with an explicit branch/leaf role
- the pure projector turning entries into a sorted tree
- visible-row flattening and row navigation helpers
- tree-row formatting for the tree pane
"""

from __future__ import annotations

from .types import Entry, NodeKind, TreeNode
from .projector import ROOT_PATH, ancestor_paths, normalize_path, project, split_key
from .rows import (
    TreeRow,
    expand_to,
    nearest_visible_index,
    parent_row_index,
    prune_expanded,
    row_index_for_path,
    visible_rows,
)
from .rendering import ROOT_LABEL, format_tree_row

__all__ = [
    "Entry",
    "NodeKind",
    "TreeNode",
    "ROOT_PATH",
    "ancestor_paths",
    "normalize_path",
    "project",
    "split_key",
    "TreeRow",
    "expand_to",
    "nearest_visible_index",
    "parent_row_index",
    "prune_expanded",
    "row_index_for_path",
    "visible_rows",
    "ROOT_LABEL",
    "format_tree_row",
]
