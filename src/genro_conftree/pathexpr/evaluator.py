# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Path expression evaluator.

Evaluation is a pure function of a tree and an expression: each step maps
the current node list to the nodes it selects, and predicates are applied
per context node against the current sibling ordering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .ast import Axis, Last, PathExpr, Position, Predicate, Step, StepKind, ValueEquals
from .parser import parse_path

if TYPE_CHECKING:
    from ..node import TreeNode


def evaluate(
    root: TreeNode, expr: PathExpr | str, context: TreeNode | None = None
) -> list[TreeNode]:
    """Return the nodes matched by ``expr``, in document order.

    Args:
        root: Root of the tree; absolute expressions start here.
        expr: Expression string or an already parsed expression.
        context: Start node for relative expressions (defaults to root).

    Raises:
        InvalidPathError: If ``expr`` is a malformed expression string.
    """
    if isinstance(expr, str):
        expr = parse_path(expr)
    start = root if expr.absolute or context is None else context
    nodes = [start]
    for step in expr.steps:
        nodes = _apply_step(nodes, step)
        if step.axis == Axis.DESCENDANT and len(nodes) > 1:
            order = {id(n): i for i, n in enumerate(root.iter_subtree())}
            nodes.sort(key=lambda n: order.get(id(n), -1))
        if not nodes:
            break
    return nodes


def _apply_step(nodes: list[TreeNode], step: Step) -> list[TreeNode]:
    if step.axis == Axis.DESCENDANT:
        nodes = _unique(n for ctx in nodes for n in ctx.iter_subtree())
    out: list[TreeNode] = []
    for ctx in nodes:
        selected = _select(ctx, step)
        for pred in step.predicates:
            selected = _apply_predicate(selected, pred)
        out.extend(selected)
    return _unique(out)


def _select(ctx: TreeNode, step: Step) -> list[TreeNode]:
    if step.kind == StepKind.LABEL:
        return ctx.children_labelled(step.label or '')
    if step.kind == StepKind.ANY:
        return list(ctx.children)
    if step.kind == StepKind.SELF:
        return [ctx]
    return [ctx.parent] if ctx.parent is not None else []


def _apply_predicate(selected: list[TreeNode], pred: Predicate) -> list[TreeNode]:
    if isinstance(pred, Position):
        return _pick(selected, pred.index)
    if isinstance(pred, Last):
        return _pick(selected, len(selected) + pred.offset)
    if isinstance(pred, ValueEquals):
        return [
            n for n in selected
            if any(m.value == pred.value for m in evaluate(n, pred.path, n))
        ]
    raise TypeError(f"Unknown predicate: {pred!r}")


def _pick(selected: list[TreeNode], position: int) -> list[TreeNode]:
    if 1 <= position <= len(selected):
        return [selected[position - 1]]
    return []


def _unique(nodes) -> list[TreeNode]:
    seen: set[int] = set()
    out: list[TreeNode] = []
    for n in nodes:
        if id(n) not in seen:
            seen.add(id(n))
            out.append(n)
    return out
