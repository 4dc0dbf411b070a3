# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Lens for /etc/hosts.

Each entry becomes a numbered node::

    /files/etc/hosts/1/ipaddr     = 127.0.0.1
    /files/etc/hosts/1/canonical  = localhost
    /files/etc/hosts/1/alias[1]   = localhost.localdomain
    /files/etc/hosts/1/#comment   = trailing comment
"""

from __future__ import annotations

from ..node import TreeNode
from .base import COMMENT, LineLens, ParseError, UnparseError


class HostsLens(LineLens):
    """Lens for hosts(5) files."""

    name = 'Hosts.lns'
    autoload = ('/etc/hosts',)

    def parse_line(self, line: str, lineno: int, seq: int) -> TreeNode:
        content, sep, comment = line.partition('#')
        fields = content.split()
        if len(fields) < 2:
            raise ParseError("expected an address followed by a host name", lineno)
        entry = TreeNode(str(seq))
        entry.add('ipaddr', fields[0])
        entry.add('canonical', fields[1])
        for alias in fields[2:]:
            entry.add('alias', alias)
        if sep and comment.strip():
            entry.add(COMMENT, comment.strip())
        return entry

    def render(self, node: TreeNode) -> str:
        ipaddr = node.child('ipaddr')
        canonical = node.child('canonical')
        if ipaddr is None or canonical is None or not ipaddr.value or not canonical.value:
            raise UnparseError(f"host entry {node.label} needs ipaddr and canonical")
        line = f"{ipaddr.value}\t{canonical.value}"
        for alias in node.children_labelled('alias'):
            if alias.value:
                line += f" {alias.value}"
        comment = node.child(COMMENT)
        if comment is not None and comment.value:
            line += f" # {comment.value}"
        return line


lns = HostsLens()
