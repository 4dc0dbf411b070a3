# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Store package - the in-memory configuration tree.

The package is organized into:
- core: ConfTree with path-addressed get/set/rm/match and structural edits

Example:
    >>> from genro_conftree.store import ConfTree
    >>> tree = ConfTree()
    >>> tree.set('/files/etc/hostname/hostname', 'box')
    >>> tree.match('/files/etc/*')
    ['/files/etc/hostname']
"""

from .core import CONTEXT_PATH, META_ROOT, ConfTree

__all__ = ["ConfTree", "CONTEXT_PATH", "META_ROOT"]
