from __future__ import annotations

import unittest

from lazyetcd.keyspace import (
    Entry,
    expand_to,
    format_tree_row,
    nearest_visible_index,
    parent_row_index,
    project,
    prune_expanded,
    row_index_for_path,
    visible_rows,
)
from lazyetcd.ui_theme import PLAIN_THEME


def _tree(*keys: str):
    return project([Entry(key=key, value="x") for key in keys])


class VisibleRowsTests(unittest.TestCase):
    def test_collapsed_tree_shows_root_and_top_level(self) -> None:
        root = _tree("/svc/a", "/svc/b", "/top")
        rows = visible_rows(root, set())

        self.assertEqual([row.path for row in rows], ["/", "/svc", "/top"])
        self.assertEqual([row.depth for row in rows], [0, 1, 1])

    def test_expanded_branch_shows_children_one_level_deeper(self) -> None:
        root = _tree("/svc/a", "/svc/b", "/top")
        rows = visible_rows(root, {"/svc"})

        self.assertEqual([row.path for row in rows], ["/", "/svc", "/svc/a", "/svc/b", "/top"])
        self.assertEqual(rows[2].depth, 2)

    def test_expand_all_opens_every_branch(self) -> None:
        root = _tree("/a/b/c", "/d")
        rows = visible_rows(root, set(), expand_all=True)

        self.assertEqual([row.path for row in rows], ["/", "/a", "/a/b", "/a/b/c", "/d"])

    def test_nearest_visible_index_falls_back_to_ancestor(self) -> None:
        root = _tree("/a/b/c", "/d")
        rows = visible_rows(root, set())

        self.assertEqual(row_index_for_path(rows, "/d"), 2)
        self.assertIsNone(row_index_for_path(rows, "/a/b/c"))
        self.assertEqual(nearest_visible_index(rows, "/a/b/c"), 1)
        self.assertEqual(nearest_visible_index(rows, "/missing/key"), 0)

    def test_parent_row_index(self) -> None:
        root = _tree("/a/b", "/a/c")
        rows = visible_rows(root, {"/a"})

        self.assertEqual(parent_row_index(rows, 3), 1)
        self.assertEqual(parent_row_index(rows, 1), 0)
        self.assertIsNone(parent_row_index(rows, 0))

    def test_expand_to_and_prune_expanded(self) -> None:
        expanded = expand_to(set(), ["/a/b/c"])
        self.assertEqual(expanded, {"/a", "/a/b"})

        root = _tree("/a/x")
        self.assertEqual(prune_expanded(root, expanded | {"/gone"}), {"/a"})


class FormatTreeRowTests(unittest.TestCase):
    def test_markers_and_suffixes_by_node_kind(self) -> None:
        root = _tree("/config/db", "/config/db/pool", "/leaf")
        rows = visible_rows(root, {"/config"})
        rendered = [format_tree_row(row, {"/config"}, theme=PLAIN_THEME) for row in rows]

        self.assertEqual(rendered[0], "etcd")
        self.assertEqual(rendered[1], "▾ config/")
        self.assertEqual(rendered[2], "  ▸ db/")
        self.assertEqual(rendered[3], "  leaf")


if __name__ == "__main__":
    unittest.main()
