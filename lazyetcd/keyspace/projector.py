"""Flat keyspace to hierarchical tree projection.

Pure functions only: the same entries (in any order) always produce an
equal tree, and nothing here performs I/O or keeps state between calls.
"""

from __future__ import annotations

from collections.abc import Iterable

from .types import Entry, TreeNode

ROOT_PATH = "/"


def split_key(key: str) -> tuple[str, ...]:
    """Split ``key`` on ``/`` dropping empty segments."""
    return tuple(part for part in key.split("/") if part)


def normalize_path(key: str) -> str:
    """Return canonical node path for ``key`` (``/a//b/`` -> ``/a/b``)."""
    return ROOT_PATH + "/".join(split_key(key))


def ancestor_paths(path: str) -> list[str]:
    """Return canonical ancestor paths of ``path`` from the root down, excluding itself."""
    segments = split_key(path)
    out = [ROOT_PATH]
    for idx in range(1, len(segments)):
        out.append(ROOT_PATH + "/".join(segments[:idx]))
    return out


def _depth(path: str) -> int:
    return 0 if path == ROOT_PATH else path.count("/")


def _segment_name(path: str) -> str:
    return "" if path == ROOT_PATH else path.rsplit("/", 1)[-1]


def project(entries: Iterable[Entry]) -> TreeNode:
    """Build the root branch for ``entries``.

    Every key becomes one node at its canonical path; intermediate segments
    become branches. Duplicate keys keep the last entry seen. Keys with no
    non-empty segment are ignored. Nodes are assembled deepest first.
    """
    entry_by_path: dict[str, Entry] = {}
    children_by_parent: dict[str, set[str]] = {ROOT_PATH: set()}

    for entry in entries:
        segments = split_key(entry.key)
        if not segments:
            continue
        parent = ROOT_PATH
        for segment in segments:
            path = ("" if parent == ROOT_PATH else parent) + "/" + segment
            children_by_parent.setdefault(parent, set()).add(path)
            children_by_parent.setdefault(path, set())
            parent = path
        entry_by_path[parent] = entry

    built: dict[str, TreeNode] = {}
    for path in sorted(children_by_parent, key=_depth, reverse=True):
        child_paths = sorted(children_by_parent[path], key=_segment_name)
        built[path] = TreeNode(
            name=_segment_name(path),
            path=path,
            entry=entry_by_path.get(path),
            children=tuple(built.pop(child) for child in child_paths),
        )
    return built[ROOT_PATH]


__all__ = ["ROOT_PATH", "split_key", "normalize_path", "ancestor_paths", "project"]
