# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Path expressions - XPath-like addressing for ConfTree nodes.

Public API:
  - parse_path(path: str) -> PathExpr
  - evaluate(root, expr, context=None) -> list[TreeNode]
"""

from .ast import Axis, Last, PathExpr, Position, Step, StepKind, ValueEquals
from .evaluator import evaluate
from .parser import parse_path

__all__ = [
    "Axis",
    "Last",
    "PathExpr",
    "Position",
    "Step",
    "StepKind",
    "ValueEquals",
    "evaluate",
    "parse_path",
]
