# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Transform registry.

A transform binds a lens to the files it loads: a list of include globs and
a list of exclude globs. The registry is the only writer of the transform
projection under ``/augeas/load``::

    /augeas/load/Hosts/lens     = Hosts.lns
    /augeas/load/Hosts/incl[1]  = /etc/hosts
    /augeas/load/Hosts/excl[1]  = *.augnew
    /augeas/load/Hosts/error    = (set when the lens could not be loaded)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator

if TYPE_CHECKING:
    from .store import ConfTree

LOAD_PATH = '/augeas/load'


@dataclass
class Transform:
    """A named binding of a lens to include/exclude globs."""

    name: str
    lens: str
    incl: list[str] = field(default_factory=list)
    excl: list[str] = field(default_factory=list)
    error: str | None = None


def default_name(lens: str) -> str:
    """Derive a transform name from a lens name.

    Example:
        >>> default_name('Hosts.lns')
        'Hosts'
        >>> default_name('@Shellvars')
        'Shellvars'
    """
    return lens.split('.')[0].replace('@', '', 1)


class TransformRegistry:
    """Registered transforms, projected into the tree on every change.

    Example:
        >>> registry = TransformRegistry(tree)
        >>> registry.register('Hosts.lns', '/etc/hosts')
        >>> tree.get('/augeas/load/Hosts/incl')
        '/etc/hosts'
    """

    def __init__(self, tree: ConfTree) -> None:
        self._transforms: dict[str, Transform] = {}
        self._node = tree.ensure(LOAD_PATH)
        tree.protect(self._node)

    def __iter__(self) -> Iterator[Transform]:
        return iter(list(self._transforms.values()))

    def __len__(self) -> int:
        return len(self._transforms)

    def __contains__(self, name: str) -> bool:
        return name in self._transforms

    def get(self, name: str) -> Transform | None:
        return self._transforms.get(name)

    def register(
        self,
        lens: str,
        incl: str | Iterable[str],
        name: str | None = None,
        excl: str | Iterable[str] | None = None,
    ) -> Transform:
        """Add a transform, or extend the one already registered as ``name``.

        Globs are appended to the existing include/exclude lists; overlaps
        between transforms are only detected when files are loaded.

        Args:
            lens: Lens name, e.g. 'Hosts.lns'.
            incl: Glob(s) of the files to transform.
            name: Transform name; derived from ``lens`` when omitted.
            excl: Glob(s) removed from the files matched by ``incl``.

        Raises:
            ValueError: If ``lens`` or ``incl`` is missing.
        """
        if not lens:
            raise ValueError("No lens specified")
        if not incl:
            raise ValueError("No files to include")
        name = name or default_name(lens)
        transform = self._transforms.get(name)
        if transform is None:
            transform = self._transforms[name] = Transform(name, lens)
        else:
            transform.lens = lens
        transform.incl.extend(_as_list(incl))
        transform.excl.extend(_as_list(excl))
        self._project()
        return transform

    def clear(self) -> None:
        """Remove every transform."""
        self._transforms.clear()
        self._project()

    def record_error(self, name: str, message: str) -> None:
        """Attach a load-time error to the transform ``name``."""
        self._transforms[name].error = message
        self._project()

    def clear_errors(self) -> None:
        for transform in self._transforms.values():
            transform.error = None
        self._project()

    def _project(self) -> None:
        node = self._node
        for child in list(node.children):
            child.detach()
        for transform in self._transforms.values():
            xfm = node.add(transform.name)
            xfm.add('lens', transform.lens)
            for glob in transform.incl:
                xfm.add('incl', glob)
            for glob in transform.excl:
                xfm.add('excl', glob)
            if transform.error:
                xfm.add('error', transform.error)


def _as_list(globs: str | Iterable[str] | None) -> list[str]:
    if globs is None:
        return []
    if isinstance(globs, str):
        return [globs]
    return list(globs)
