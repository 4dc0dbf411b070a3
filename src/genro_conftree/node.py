# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ConfTree node classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

_SPECIAL_CHARS = frozenset('/[]*=()\'"\\')


@dataclass(frozen=True)
class Span:
    """Position of a node in the text it was parsed from.

    Offsets are character offsets into the file, end exclusive.
    """

    filename: str
    value_start: int
    value_end: int
    span_start: int
    span_end: int


class TreeNode:
    """A node in a ConfTree hierarchy.

    Each node has:
    - label: The node's name; siblings may share a label
    - value: Optional scalar string value
    - children: Ordered list of child nodes
    - parent: The containing node, None for the root
    - dirty: True when the node or something below it changed since the
      last load or save
    - span: Source position, recorded by lenses when spans are enabled
    - attr: Lens bookkeeping that is not part of the addressable tree

    Example:
        >>> node = TreeNode('ipaddr', '127.0.0.1')
        >>> node.label
        'ipaddr'
        >>> node.value
        '127.0.0.1'
    """

    __slots__ = ('label', 'value', 'children', 'parent', 'dirty', 'span', 'attr')

    def __init__(
        self,
        label: str,
        value: str | None = None,
        children: list[TreeNode] | None = None,
        attr: dict[str, Any] | None = None,
    ) -> None:
        self.label = label
        self.value = value
        self.children: list[TreeNode] = []
        self.parent: TreeNode | None = None
        self.dirty = False
        self.span: Span | None = None
        self.attr = attr or {}
        for child in children or ():
            self.append(child)

    def __repr__(self) -> str:
        return (
            f"TreeNode({self.label!r}, value={self.value!r}, "
            f"children={len(self.children)})"
        )

    @property
    def is_leaf(self) -> bool:
        """True if this node has no children."""
        return not self.children

    @property
    def _(self) -> TreeNode:
        """Return the parent node for navigation/chaining."""
        if self.parent is None:
            raise ValueError("Node has no parent")
        return self.parent

    # ==================== Mutation ====================

    def mark_dirty(self) -> None:
        """Flag this node and all its ancestors as modified."""
        node: TreeNode | None = self
        while node is not None and not node.dirty:
            node.dirty = True
            node = node.parent

    def clean(self) -> None:
        """Clear the dirty flag on this node and its whole subtree."""
        for node in self.iter_subtree():
            node.dirty = False

    def set_value(self, value: str | None) -> None:
        self.value = value
        self.mark_dirty()

    def append(self, child: TreeNode) -> TreeNode:
        """Append ``child`` as the last child and return it."""
        return self.insert(len(self.children), child)

    def insert(self, index: int, child: TreeNode) -> TreeNode:
        """Insert ``child`` at ``index`` among the children and return it."""
        child.parent = self
        self.children.insert(index, child)
        child.mark_dirty()
        return child

    def add(self, label: str, value: str | None = None) -> TreeNode:
        """Create a child labelled ``label`` at the end of the children."""
        return self.append(TreeNode(label, value))

    def detach(self) -> TreeNode:
        """Remove this node from its parent and return it."""
        parent = self._
        parent.children.remove(self)
        parent.mark_dirty()
        self.parent = None
        return self

    # ==================== Navigation ====================

    def child(self, label: str) -> TreeNode | None:
        """Return the first child labelled ``label``, or None."""
        for node in self.children:
            if node.label == label:
                return node
        return None

    def children_labelled(self, label: str) -> list[TreeNode]:
        return [node for node in self.children if node.label == label]

    def iter_subtree(self) -> Iterator[TreeNode]:
        """Yield this node and all its descendants in document order."""
        yield self
        for node in self.children:
            yield from node.iter_subtree()

    def iter_descendants(self) -> Iterator[TreeNode]:
        """Yield all descendants, excluding this node, in document order."""
        for node in self.children:
            yield from node.iter_subtree()

    def is_ancestor_of(self, other: TreeNode) -> bool:
        """True if ``other`` is this node or lies below it."""
        node: TreeNode | None = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def count(self) -> int:
        """Number of nodes in this subtree, including this node."""
        return sum(1 for _ in self.iter_subtree())

    @property
    def path(self) -> str:
        """Path of this node from the root.

        Same-labelled siblings are disambiguated with a 1-based ``[N]``
        suffix; special characters in labels are escaped with a backslash.

        Example:
            >>> root = TreeNode('')
            >>> hosts = root.add('files').add('hosts')
            >>> hosts.path
            '/files/hosts'
        """
        segments: list[str] = []
        node = self
        while node.parent is not None:
            segments.append(node._segment())
            node = node.parent
        return '/' + '/'.join(reversed(segments))

    def _segment(self) -> str:
        siblings = self._.children_labelled(self.label)
        segment = escape_label(self.label)
        if len(siblings) > 1:
            position = next(i for i, n in enumerate(siblings, 1) if n is self)
            segment = f"{segment}[{position}]"
        return segment


def escape_label(label: str) -> str:
    """Backslash-escape characters that have a meaning in path expressions."""
    if label in ('.', '..'):
        return '\\' + label
    return ''.join(
        '\\' + ch if ch in _SPECIAL_CHARS or ch.isspace() else ch for ch in label
    )
