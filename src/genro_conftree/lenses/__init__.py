# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Lenses: reversible text <-> tree transforms.

Available lenses:
- hosts: Hosts.lns for /etc/hosts
- shellvars: Shellvars.lns for KEY=value files

Example:
    >>> from genro_conftree.lenses import LensLoader
    >>> lens = LensLoader().lens('Hosts.lns')
    >>> fragment = lens.get('127.0.0.1 localhost\\n')
    >>> fragment.nodes[0].child('ipaddr').value
    '127.0.0.1'
"""

from .base import (
    Fragment,
    Lens,
    LensLoader,
    LineLens,
    ParseError,
    STANDARD_EXCL,
    UnparseError,
)

__all__ = [
    'Fragment',
    'Lens',
    'LensLoader',
    'LineLens',
    'ParseError',
    'STANDARD_EXCL',
    'UnparseError',
]
