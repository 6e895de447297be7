"""Value types for store entries and projected tree nodes."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Entry:
    """Immutable snapshot of one key plus store-assigned metadata.

    ``lease_id`` of ``0`` means the key never expires.
    """

    key: str
    value: str
    create_revision: int = 0
    mod_revision: int = 0
    version: int = 0
    lease_id: int = 0

    @property
    def has_lease(self) -> bool:
        return self.lease_id > 0


class NodeKind(Enum):
    """Role of a projected node: directory, value, or both."""

    BRANCH = "branch"
    LEAF = "leaf"
    BRANCH_AND_LEAF = "branch_and_leaf"


@dataclass(frozen=True)
class TreeNode:
    """One node of the projected keyspace tree.

    ``entry`` is set for nodes that correspond to a store key. A node can
    carry an entry and children at the same time when another key is nested
    under it. Children are always sorted by ``name``.
    """

    name: str
    path: str
    entry: Entry | None = None
    children: tuple["TreeNode", ...] = ()

    @property
    def kind(self) -> NodeKind:
        if self.entry is None:
            return NodeKind.BRANCH
        if self.children:
            return NodeKind.BRANCH_AND_LEAF
        return NodeKind.LEAF

    @property
    def is_leaf(self) -> bool:
        return self.entry is not None

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def child(self, name: str) -> TreeNode | None:
        """Return direct child named ``name`` or ``None``."""
        for candidate in self.children:
            if candidate.name == name:
                return candidate
        return None

    def find(self, path: str) -> TreeNode | None:
        """Resolve a slash path (leading/trailing/duplicate slashes ignored)."""
        node: TreeNode | None = self
        for segment in (part for part in path.split("/") if part):
            if node is None:
                return None
            node = node.child(segment)
        return node

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Pre-order traversal including ``self``."""
        stack: list[TreeNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_leaves(self) -> Iterator[TreeNode]:
        """Yield every node carrying an entry, in display order."""
        for node in self.iter_nodes():
            if node.entry is not None:
                yield node

    def leaf_keys(self) -> set[str]:
        return {node.entry.key for node in self.iter_leaves() if node.entry is not None}

    def count_leaves(self) -> int:
        return sum(1 for _node in self.iter_leaves())


__all__ = ["Entry", "NodeKind", "TreeNode"]
