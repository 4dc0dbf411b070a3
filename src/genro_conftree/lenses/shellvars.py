# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Lens for shell variable files such as /etc/default/*.

``export LANG="C"`` becomes ``/files/etc/default/locale/LANG = "C"`` with an
``export`` child. Values keep their quotes.
"""

from __future__ import annotations

import re

from ..node import TreeNode
from .base import LineLens, ParseError, UnparseError

_ASSIGNMENT = re.compile(r'^\s*(export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*?)\s*$')
_KEY = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class ShellvarsLens(LineLens):
    """Lens for KEY=value files."""

    name = 'Shellvars.lns'
    autoload = ('/etc/default/*', '/etc/environment', '/etc/os-release')

    def parse_line(self, line: str, lineno: int, seq: int) -> TreeNode:
        match = _ASSIGNMENT.match(line)
        if match is None:
            raise ParseError("expected KEY=value", lineno)
        export, key, value = match.groups()
        node = TreeNode(key, value)
        if export:
            node.add('export')
        return node

    def render(self, node: TreeNode) -> str:
        if not _KEY.match(node.label):
            raise UnparseError(f"invalid variable name {node.label!r}")
        prefix = 'export ' if node.child('export') is not None else ''
        return f"{prefix}{node.label}={node.value or ''}"


lns = ShellvarsLens()
