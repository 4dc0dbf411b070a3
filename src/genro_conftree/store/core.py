# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ConfTree - the in-memory configuration tree.

This module provides the ConfTree class, the store behind a session. Nodes
are addressed with path expressions (see :mod:`genro_conftree.pathexpr`),
siblings may share a label and keep their order.

Path Syntax:
    - Absolute paths: '/files/etc/hosts/1/ipaddr'
    - Positional: 'alias[2]', 'alias[last()]'
    - Append target: 'alias[last()+1]'
    - Wildcard and descendants: '/files/etc/hosts/*/alias', '/augeas//error'
    - Relative paths start at the node named by '/augeas/context'

Example:
    Basic usage::

        tree = ConfTree()
        tree.set('/files/etc/hosts/1/ipaddr', '127.0.0.1')
        tree.set('/files/etc/hosts/1/alias[last()+1]', 'localhost')
        tree.set('/files/etc/hosts/1/alias[last()+1]', 'loopback')

        tree.get('/files/etc/hosts/1/ipaddr')      # '127.0.0.1'
        tree.match('/files/etc/hosts/1/alias')
        # ['/files/etc/hosts/1/alias[1]', '/files/etc/hosts/1/alias[2]']
"""

from __future__ import annotations

from typing import Iterator

from ..exceptions import (
    BadArgumentError,
    DescendantError,
    InvalidPathError,
    LabelError,
    MultipleMatchesError,
    NoMatchError,
    NoSpanInfoError,
)
from ..node import Span, TreeNode
from ..pathexpr import PathExpr, evaluate, parse_path

META_ROOT = '/augeas'
CONTEXT_PATH = '/augeas/context'


class ConfTree:
    """A hierarchical configuration tree addressed by path expressions.

    ConfTree provides:
    - get(path) / set(path, value): single-node access with autocreate
    - rm(path) / match(path): multi-node removal and lookup
    - insert / mv / rename: structural edits that keep sibling order
    - protect(node): read-only subtrees reserved for the session

    Example:
        >>> tree = ConfTree()
        >>> tree.set('/a/b', 'x')
        >>> tree.get('/a/b')
        'x'
    """

    __slots__ = ('root', '_readonly')

    def __init__(self) -> None:
        self.root = TreeNode('')
        self._readonly: list[TreeNode] = []

    def __repr__(self) -> str:
        return f"ConfTree({[n.label for n in self.root.children]})"

    def __contains__(self, path: str) -> bool:
        return self.exists(path)

    # ==================== Path Utilities ====================

    def _context(self) -> TreeNode:
        """Return the start node for relative paths.

        The context is the single node matched by the value of
        /augeas/context; any other outcome falls back to the root.
        """
        holders = evaluate(self.root, CONTEXT_PATH)
        if len(holders) != 1 or not holders[0].value:
            return self.root
        ctx_path = holders[0].value
        if len(ctx_path) > 1:
            ctx_path = ctx_path.rstrip('/')
        nodes = evaluate(self.root, ctx_path)
        return nodes[0] if len(nodes) == 1 else self.root

    def select(self, path: str | PathExpr) -> list[TreeNode]:
        """Return all nodes matching ``path`` in document order."""
        expr = parse_path(path) if isinstance(path, str) else path
        return evaluate(self.root, expr, self._context())

    def node(self, path: str) -> TreeNode:
        """Return the single node matching ``path``.

        Raises:
            NoMatchError: If nothing matches.
            MultipleMatchesError: If more than one node matches.
        """
        nodes = self.select(path)
        if not nodes:
            raise NoMatchError("No match for path expression", path)
        if len(nodes) > 1:
            raise MultipleMatchesError(
                "Too many matches for path expression", path
            )
        return nodes[0]

    def _anchor(
        self, expr: PathExpr, base: TreeNode | None = None
    ) -> tuple[TreeNode, int]:
        """Find the deepest node an unmatched path can be created under.

        Returns the single node matched by the longest prefix of ``expr``
        together with the number of steps that prefix covers.
        """
        start = base if base is not None else self._context()
        for length in range(len(expr.steps) - 1, -1, -1):
            nodes = evaluate(self.root, expr.prefix(length), start)
            if len(nodes) == 1:
                return nodes[0], length
            if len(nodes) > 1:
                raise MultipleMatchesError(
                    "Too many matches for path expression", str(expr.prefix(length))
                )
        return (self.root if expr.absolute else start), 0

    def _create(
        self, expr: PathExpr, base: TreeNode | None = None, check: bool = True
    ) -> TreeNode:
        anchor, length = self._anchor(expr, base)
        missing = expr.steps[length:]
        for step in missing:
            if not step.is_plain:
                raise InvalidPathError(
                    "Cannot create node for path expression", f"step '{step}' in {expr}"
                )
        if check and missing:
            self._check_writable(anchor)
        for step in missing:
            anchor = anchor.add(step.label or '')
        return anchor

    def ensure(self, path: str) -> TreeNode:
        """Return the single node at ``path``, creating it if needed.

        Bypasses read-only checks; used to maintain the reserved subtrees.
        """
        expr = parse_path(path)
        nodes = evaluate(self.root, expr)
        if len(nodes) > 1:
            raise MultipleMatchesError("Too many matches for path expression", path)
        return nodes[0] if nodes else self._create(expr, self.root, check=False)

    # ==================== Read-only Subtrees ====================

    def protect(self, node: TreeNode) -> None:
        """Make the subtree under ``node`` read-only for path operations."""
        if not any(p is node for p in self._readonly):
            self._readonly.append(node)

    def _check_writable(self, node: TreeNode, subtree: bool = False) -> None:
        """Raise if ``node`` lies in a read-only subtree.

        With ``subtree`` the node must also not contain a read-only subtree,
        as required by operations that remove or relabel whole subtrees.
        """
        if node is self.root and subtree:
            raise BadArgumentError("Cannot modify the root node")
        for guarded in self._readonly:
            if guarded.is_ancestor_of(node) or (subtree and node.is_ancestor_of(guarded)):
                raise BadArgumentError("Read-only node", node.path)

    # ==================== Core API ====================

    def get(self, path: str) -> str | None:
        """Get the value of the single node matching ``path``."""
        return self.node(path).value

    def exists(self, path: str) -> bool:
        """True if ``path`` matches at least one node."""
        return bool(self.select(path))

    def set(self, path: str, value: str | None) -> TreeNode:
        """Set the value of the node at ``path``, creating it if needed.

        When nothing matches, nodes are created for the unmatched steps below
        the longest prefix that matches exactly one node; a ``[last()+1]``
        step therefore appends a new sibling.

        Raises:
            MultipleMatchesError: If ``path`` or its prefix is ambiguous.
            InvalidPathError: If the missing steps cannot be created.
        """
        expr = parse_path(path)
        return self._set_at(expr, value)

    def _set_at(
        self, expr: PathExpr, value: str | None, base: TreeNode | None = None
    ) -> TreeNode:
        if value is not None and not isinstance(value, str):
            raise TypeError(f"value must be str or None, not {type(value).__name__}")
        start = base if base is not None else self._context()
        nodes = evaluate(self.root, expr, start)
        if len(nodes) > 1:
            raise MultipleMatchesError("Too many matches for path expression", str(expr))
        if nodes:
            node = nodes[0]
            self._check_writable(node)
        else:
            node = self._create(expr, start)
        node.set_value(value)
        return node

    def setm(self, base: str, sub: str | None, value: str | None) -> int:
        """Set ``sub`` below every node matching ``base``.

        ``sub`` is interpreted relative to each base node; when it is None
        the base nodes themselves are modified.

        Returns:
            Number of nodes modified.
        """
        sub_expr = parse_path(sub) if sub else None
        bases = self.select(base)
        for node in bases:
            if sub_expr is None:
                self._check_writable(node)
                node.set_value(value)
            else:
                self._set_at(sub_expr, value, node)
        return len(bases)

    def rm(self, path: str) -> int:
        """Remove every node matching ``path`` together with its subtree.

        Returns:
            Number of nodes removed, descendants included; 0 if nothing
            matched.
        """
        nodes = self.select(path)
        for node in nodes:
            self._check_writable(node, subtree=True)
        removed = 0
        for node in nodes:
            if not self.root.is_ancestor_of(node):
                continue  # already gone with an ancestor
            removed += node.count()
            node.detach()
        return removed

    def match(self, path: str) -> list[str]:
        """Return the paths of all nodes matching ``path``.

        An expression that matches nothing yields an empty list.
        """
        return [node.path for node in self.select(path)]

    def insert(self, path: str, label: str, before: bool = False) -> TreeNode:
        """Insert a new sibling labelled ``label`` next to the node at ``path``.

        Args:
            path: Must match exactly one node, which must not be the root.
            label: Label of the new node.
            before: Insert before the matched node instead of after it.
        """
        _check_label(label)
        node = self.node(path)
        if node.parent is None:
            raise BadArgumentError("Cannot insert a sibling of the root node")
        parent = node.parent
        self._check_writable(parent)
        index = parent.children.index(node) + (0 if before else 1)
        return parent.insert(index, TreeNode(label))

    def mv(self, src: str, dst: str) -> TreeNode:
        """Move the node at ``src`` to ``dst``.

        ``dst`` is created if it does not exist; otherwise its value and
        children are replaced. The moved node takes the label of ``dst``.

        Raises:
            DescendantError: If ``dst`` lies inside the subtree of ``src``.
        """
        source = self.node(src)
        self._check_writable(source, subtree=True)
        dst_expr = parse_path(dst)
        targets = self.select(dst_expr)
        if len(targets) > 1:
            raise MultipleMatchesError("Too many matches for path expression", dst)
        if targets:
            target = targets[0]
            if source.is_ancestor_of(target):
                raise DescendantError("Cannot move node into its descendant", f"{src} to {dst}")
            self._check_writable(target)
        else:
            anchor, _ = self._anchor(dst_expr)
            if source.is_ancestor_of(anchor):
                raise DescendantError("Cannot move node into its descendant", f"{src} to {dst}")
            target = self._create(dst_expr)
        source.detach()
        for child in target.children:
            child.parent = None
        target.children = []
        target.value = source.value
        for child in list(source.children):
            target.append(child)
        target.mark_dirty()
        for node in target.iter_subtree():
            node.dirty = True
        return target

    def rename(self, path: str, label: str) -> int:
        """Relabel every node matching ``path``.

        Returns:
            Number of nodes renamed.
        """
        _check_label(label)
        nodes = self.select(path)
        for node in nodes:
            self._check_writable(node, subtree=True)
        for node in nodes:
            node.label = label
            node.mark_dirty()
        return len(nodes)

    def path_of(self, node: TreeNode) -> str:
        """Return the rendered path of ``node``."""
        return node.path

    def label(self, path: str) -> str:
        """Return the label of the single node matching ``path``."""
        return self.node(path).label

    def span(self, path: str) -> Span:
        """Return the source span of the single node matching ``path``.

        Raises:
            NoSpanInfoError: If no span was recorded for the node.
        """
        node = self.node(path)
        if node.span is None:
            raise NoSpanInfoError("No span info for", path)
        return node.span

    # ==================== Walk ====================

    def walk(self, path: str = '/') -> Iterator[tuple[str, TreeNode]]:
        """Yield (path, node) for every node below the matches of ``path``.

        Example:
            >>> for path, node in tree.walk('/files'):
            ...     print(path, node.value)
        """
        for top in self.select(path):
            for node in top.iter_subtree():
                yield node.path, node


def _check_label(label: str) -> None:
    if not label or '/' in label:
        raise LabelError("Invalid label", repr(label))
