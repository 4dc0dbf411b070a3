# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Session - the public operation surface.

A session owns one tree, one transform registry and one error record. Every
operation runs through the error translator, so after each call the record
under ``/augeas/error`` describes its outcome and failures are raised as
:class:`~genro_conftree.exceptions.ConfTreeError` subclasses.

Example:
    Editing /etc/hosts below a test root::

        with Session.open(root='/tmp/x', flags=Flags.NO_MODL_AUTOLOAD) as aug:
            aug.transform('Hosts.lns', '/etc/hosts')
            aug.load()
            aug.set('/files/etc/hosts/1/ipaddr', '10.0.0.9')
            aug.save()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import IntFlag
from pathlib import Path
from typing import Any, Callable, Iterable

from . import __version__
from .exceptions import CommandExecutionError, NoSpanInfoError
from .files import LocalFiles
from .lenses import LensLoader
from .loader import SAVE_MODE_PATH, SPAN_PATH, FileError, LoadSaveController, SaveMode
from .node import Span
from .store import CONTEXT_PATH, ConfTree
from .transforms import Transform, TransformRegistry
from .translator import ErrorRecord, ErrorTranslator

logger = logging.getLogger(__name__)

ROOT_ENV = 'AUGEAS_ROOT'
LENS_LIB_ENV = 'AUGEAS_LENS_LIB'

_ERROR_HINT = "Search the tree in /augeas//error for the actual errors."


class Flags(IntFlag):
    """Options fixed when a session is opened."""

    NONE = 0
    SAVE_BACKUP = 1
    SAVE_NEWFILE = 2
    NO_STDINC = 8
    SAVE_NOOP = 16
    NO_LOAD = 32
    NO_MODL_AUTOLOAD = 64
    ENABLE_SPAN = 128
    TRACE_MODULE_LOADING = 512


@dataclass(frozen=True)
class SessionConfig:
    """Configuration captured when a session is opened."""

    root: Path
    loadpath: tuple[Path, ...] = ()
    flags: Flags = Flags.NONE

    @classmethod
    def from_args(
        cls,
        root: str | os.PathLike | None = None,
        loadpath: str | Iterable[str | os.PathLike] | None = None,
        flags: Flags | int = Flags.NONE,
    ) -> SessionConfig:
        """Resolve open() arguments against the environment.

        ``root`` falls back to $AUGEAS_ROOT and then to '/'. The directories
        of ``loadpath`` (a colon-separated string or a sequence) come before
        those of $AUGEAS_LENS_LIB.
        """
        if root is None:
            root = os.environ.get(ROOT_ENV) or '/'
        dirs = _split_path(loadpath) + _split_path(os.environ.get(LENS_LIB_ENV))
        return cls(Path(root), tuple(Path(d) for d in dirs), Flags(flags))

    @property
    def save_mode(self) -> SaveMode:
        if self.flags & Flags.SAVE_NOOP:
            return SaveMode.NOOP
        if self.flags & Flags.SAVE_NEWFILE:
            return SaveMode.NEWFILE
        if self.flags & Flags.SAVE_BACKUP:
            return SaveMode.BACKUP
        return SaveMode.OVERWRITE


def _split_path(value: str | Iterable[str | os.PathLike] | None) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [part for part in value.split(':') if part]
    return [os.fspath(part) for part in value]


class Session:
    """A configuration tree bound to files below a root directory.

    Use :meth:`open` rather than the constructor; it performs the initial
    load unless ``Flags.NO_LOAD`` is given.
    """

    def __init__(self, config: SessionConfig) -> None:
        self.config = config
        flags = config.flags
        self._tree = tree = ConfTree()
        self._translator = ErrorTranslator(tree)
        self._registry = TransformRegistry(tree)
        self._lenses = LensLoader(
            config.loadpath,
            stdinc=not flags & Flags.NO_STDINC,
            trace=bool(flags & Flags.TRACE_MODULE_LOADING),
        )
        self._controller = LoadSaveController(
            tree, self._registry, self._lenses, LocalFiles(config.root)
        )
        self._closed = False

        for path, value in (
            ('/augeas/root', str(config.root)),
            ('/augeas/version', __version__),
        ):
            node = tree.ensure(path)
            node.value = value
            tree.protect(node)
        tree.ensure(CONTEXT_PATH).value = '/'
        tree.ensure(SAVE_MODE_PATH).value = config.save_mode.value
        tree.ensure(SPAN_PATH).value = 'enable' if flags & Flags.ENABLE_SPAN else 'disable'

        if not flags & Flags.NO_MODL_AUTOLOAD:
            for lens in self._lenses.autoload():
                self._registry.register(lens.name, lens.autoload, excl=lens.autoload_excl)

    @classmethod
    def open(
        cls,
        root: str | os.PathLike | None = None,
        loadpath: str | Iterable[str | os.PathLike] | None = None,
        flags: Flags | int = Flags.NONE,
    ) -> Session:
        """Open a session.

        Args:
            root: Directory the file paths are resolved under.
            loadpath: Extra directories searched for lens modules.
            flags: Combination of :class:`Flags`.

        Raises:
            CommandExecutionError: If the initial load fails.
        """
        session = cls(SessionConfig.from_args(root, loadpath, flags))
        logger.debug("Opened session on %s", session.config.root)
        if not session.config.flags & Flags.NO_LOAD:
            try:
                session.load()
            except Exception:
                session.close()
                raise
        return session

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = 'closed' if self._closed else 'open'
        return f"Session({str(self.config.root)!r}, {state})"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tree(self) -> ConfTree:
        self._check_open()
        return self._tree

    @property
    def error(self) -> ErrorRecord:
        """Error record of the most recent operation."""
        return self._translator.record

    def close(self) -> None:
        """Release the tree and the registry. Closing twice is harmless."""
        if self._closed:
            return
        self._closed = True
        self._tree.root.children.clear()
        logger.debug("Closed session on %s", self.config.root)

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("Operation on a closed session")

    def _run(self, command: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        self._check_open()
        return self._translator.check(self._translator.capture(command, *args, **kwargs))

    # ==================== Tree operations ====================

    def get(self, path: str) -> str | None:
        """Return the value of the single node matching ``path``."""
        return self._run(self._tree.get, path)

    def exists(self, path: str) -> bool:
        return self._run(self._tree.exists, path)

    def set(self, path: str, *values: str | list[str] | None) -> None:
        """Set ``path`` to each of ``values`` in turn.

        Several values are meaningful with an append path such as
        ``.../alias[last()+1]``, which creates one node per value.
        Without values the node is created (or kept) with no value; an empty
        list only checks ``path``.
        """
        flat: list[str | None] = [] if values else [None]
        for value in values:
            if isinstance(value, (list, tuple)):
                flat.extend(value)
            else:
                flat.append(value)
        if not flat:
            self._run(self._tree.match, path)
        for value in flat:
            self._run(self._tree.set, path, value)

    def setm(self, base: str, sub: str | None, value: str | None) -> int:
        return self._run(self._tree.setm, base, sub, value)

    def rm(self, path: str) -> int:
        """Remove the matches of ``path``; return the number of nodes removed."""
        return self._run(self._tree.rm, path)

    def match(self, path: str) -> list[str]:
        return self._run(self._tree.match, path)

    def insert(self, path: str, label: str, before: bool = False) -> None:
        self._run(self._tree.insert, path, label, before)

    def mv(self, src: str, dst: str) -> None:
        self._run(self._tree.mv, src, dst)

    def rename(self, path: str, label: str) -> int:
        return self._run(self._tree.rename, path, label)

    def label(self, path: str) -> str:
        return self._run(self._tree.label, path)

    def span(self, path: str) -> Span:
        """Return the source span of the node at ``path``.

        Raises:
            NoSpanInfoError: If span recording is disabled or the node has
                no span.
        """
        return self._run(self._span, path)

    def _span(self, path: str) -> Span:
        if self._tree.get(SPAN_PATH) != 'enable':
            raise NoSpanInfoError("Span recording is disabled", path)
        return self._tree.span(path)

    # ==================== Transforms ====================

    def transform(
        self,
        lens: str,
        incl: str | Iterable[str],
        name: str | None = None,
        excl: str | Iterable[str] | None = None,
    ) -> Transform:
        """Register a transform; it takes effect at the next :meth:`load`.

        Raises:
            ValueError: If ``lens`` or ``incl`` is missing.
        """
        return self._run(self._registry.register, lens, incl, name=name, excl=excl)

    def clear_transforms(self) -> None:
        """Drop every transform; a following load leaves /files empty."""
        self._run(self._registry.clear)

    # ==================== Load / Save ====================

    def load(self) -> int:
        """Load the files of all transforms into /files.

        Per-file failures are recorded under /augeas/files and do not raise.

        Returns:
            Number of files loaded.

        Raises:
            CommandExecutionError: If the load could not run.
        """
        return self._run(self._lifecycle, self._controller.load, "Loading failed.")

    def save(self) -> int:
        """Write modified file trees back to disk.

        Returns:
            Number of files written or deleted.

        Raises:
            CommandExecutionError: If any file could not be saved.
        """
        return self._run(self._lifecycle, self._controller.save, "Saving failed.")

    @staticmethod
    def _lifecycle(command: Callable[[], int], message: str) -> int:
        result = command()
        if result < 0:
            raise CommandExecutionError(message, _ERROR_HINT)
        return result

    def file_errors(self) -> list[FileError]:
        """Per-file errors recorded by the last load and save."""
        return self._run(self._controller.file_errors)
