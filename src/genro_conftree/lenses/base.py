# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Lens base classes and the lens loader.

A lens converts file text into a :class:`Fragment` (``get``) and a fragment
back into file text (``put``). Lenses live in Python modules: the lens
``Hosts.lns`` is the attribute ``lns`` of the module ``hosts``, looked up
first in the session load path and then among the bundled lenses.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Iterator, Sequence

from ..exceptions import LensNotFoundError, LensSyntaxError
from ..node import Span, TreeNode

logger = logging.getLogger(__name__)

BUNDLED_PACKAGE = 'genro_conftree.lenses'
BUNDLED_MODULES = ('hosts', 'shellvars')

# Backup and package-manager leftovers never loaded by the bundled lenses.
STANDARD_EXCL = (
    '*.augnew',
    '*.augsave',
    '*.dpkg-dist',
    '*.dpkg-new',
    '*.dpkg-old',
    '*.rpmnew',
    '*.rpmsave',
    '*~',
)

COMMENT = '#comment'


class ParseError(ValueError):
    """Raised by a lens when file text does not match its format."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(f"{message} (line {line})" if line else message)


class UnparseError(ValueError):
    """Raised by a lens when a tree cannot be turned back into text."""


@dataclass
class Fragment:
    """Top-level nodes of one file, plus text after the last node."""

    nodes: list[TreeNode] = field(default_factory=list)
    tail: str = ''


class Lens(ABC):
    """Abstract base class for lenses.

    Attributes:
        name: Qualified lens name, e.g. 'Hosts.lns'.
        autoload: Globs loaded by default when modules are autoloaded.
        autoload_excl: Globs excluded from ``autoload``.
    """

    name: str = ''
    autoload: tuple[str, ...] = ()
    autoload_excl: tuple[str, ...] = STANDARD_EXCL

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    @abstractmethod
    def get(self, text: str, filename: str = '', spans: bool = False) -> Fragment:
        """Parse ``text`` into a fragment.

        Raises:
            ParseError: If the text does not match the lens.
        """

    @abstractmethod
    def put(self, fragment: Fragment) -> str:
        """Render ``fragment`` as file text.

        Raises:
            UnparseError: If the fragment does not fit the lens.
        """


class LineLens(Lens):
    """A lens for line-oriented files with '#' comments.

    Subclasses implement :meth:`parse_line` and :meth:`render`. Blank lines
    are kept with the entry that follows them, and entries that were not
    modified since loading are written back with their original text.
    """

    def get(self, text: str, filename: str = '', spans: bool = False) -> Fragment:
        fragment = Fragment()
        pending = ''
        offset = 0
        entries = 0
        for lineno, line in enumerate(text.splitlines(keepends=True), 1):
            start = offset
            offset += len(line)
            body = line.rstrip('\r\n')
            stripped = body.strip()
            if not stripped or stripped == '#':
                pending += line
                continue
            if stripped.startswith('#'):
                node = TreeNode(COMMENT, stripped[1:].strip())
            else:
                entries += 1
                node = self.parse_line(body, lineno, entries)
            node.clean()
            node.attr['before'] = pending
            node.attr['line'] = line
            pending = ''
            if spans:
                _record_spans(node, body, filename, start)
            fragment.nodes.append(node)
        fragment.tail = pending
        return fragment

    def put(self, fragment: Fragment) -> str:
        out: list[str] = []
        for node in fragment.nodes:
            if not node.dirty and 'line' in node.attr:
                text = node.attr['line']
            elif node.label == COMMENT:
                text = f"# {node.value or ''}\n"
            else:
                text = self.render(node) + '\n'
            if out and not out[-1].endswith('\n'):
                out.append('\n')
            out.append(node.attr.get('before', '') + text)
        out.append(fragment.tail)
        return ''.join(out)

    @abstractmethod
    def parse_line(self, line: str, lineno: int, seq: int) -> TreeNode:
        """Turn one non-comment line into a node.

        Args:
            line: The line without its line terminator.
            lineno: 1-based line number, for error messages.
            seq: 1-based index of the entry among the file's entries.
        """

    @abstractmethod
    def render(self, node: TreeNode) -> str:
        """Turn a node back into one line, without line terminator."""


def _record_spans(node: TreeNode, body: str, filename: str, start: int) -> None:
    end = start + len(body)
    node.span = Span(filename, start, end, start, end)
    cursor = 0
    for child in node.iter_descendants():
        if not child.value:
            continue
        found = body.find(child.value, cursor)
        if found < 0:
            continue
        cursor = found + len(child.value)
        child.span = Span(filename, start + found, start + cursor, start + found, start + cursor)


# ==================== Lens loading ====================


class LensLoader:
    """Find lenses by name on a load path.

    Args:
        loadpath: Directories searched for lens modules, in order.
        stdinc: Also search the bundled lenses.
        trace: Log every module loaded at INFO level.
    """

    def __init__(
        self, loadpath: Sequence[Path] = (), stdinc: bool = True, trace: bool = False
    ) -> None:
        self.loadpath = tuple(Path(p) for p in loadpath)
        self.stdinc = stdinc
        self.trace = trace
        self._modules: dict[str, ModuleType] = {}

    def lens(self, name: str) -> Lens:
        """Return the lens called ``name``.

        Raises:
            LensNotFoundError: If no module or attribute provides the lens.
            LensSyntaxError: If the lens module fails to load.
        """
        module_name, _, attr = name.lstrip('@').partition('.')
        module = self._module(module_name)
        lens = getattr(module, attr or 'lns', None)
        if not isinstance(lens, Lens):
            raise LensNotFoundError("Lens not found", name)
        return lens

    def autoload(self) -> Iterator[Lens]:
        """Yield the lenses that declare default globs.

        Modules that fail to load are logged and skipped.
        """
        names: list[str] = []
        for directory in self.loadpath:
            if directory.is_dir():
                names.extend(sorted(p.stem for p in directory.glob('*.py')))
        if self.stdinc:
            names.extend(BUNDLED_MODULES)
        seen: set[str] = set()
        for module_name in names:
            if module_name in seen:
                continue
            seen.add(module_name)
            try:
                module = self._module(module_name)
            except (LensNotFoundError, LensSyntaxError) as e:
                logger.warning("Skipping lens module %s: %s", module_name, e)
                continue
            lens = getattr(module, 'lns', None)
            if isinstance(lens, Lens) and lens.autoload:
                yield lens

    def _module(self, module_name: str) -> ModuleType:
        key = module_name.lower()
        if not re.fullmatch(r'[a-z_][a-z0-9_]*', key):
            raise LensNotFoundError("Invalid lens module name", module_name)
        if key in self._modules:
            return self._modules[key]
        module = self._find_on_loadpath(key) or self._find_bundled(key)
        if module is None:
            raise LensNotFoundError("Lens module not found", module_name)
        self._modules[key] = module
        if self.trace:
            logger.info("Loaded lens module %s from %s", key, module.__file__)
        return module

    def _find_on_loadpath(self, key: str) -> ModuleType | None:
        for directory in self.loadpath:
            path = directory / f"{key}.py"
            if path.is_file():
                return _load_module_from_path(path)
        return None

    def _find_bundled(self, key: str) -> ModuleType | None:
        if not self.stdinc or key not in BUNDLED_MODULES:
            return None
        return importlib.import_module(f"{BUNDLED_PACKAGE}.{key}")


def _load_module_from_path(path: Path) -> ModuleType:
    """Load a lens module from a file without adding it to sys.modules."""
    module_name = f"{BUNDLED_PACKAGE}.user.{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise LensNotFoundError("Cannot load lens module", str(path))
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise LensSyntaxError("Failed to load lens module", f"{path}: {e}") from e
    return module
