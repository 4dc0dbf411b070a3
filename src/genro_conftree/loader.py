# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Load and save files through the registered transforms.

Loading replaces ``/files`` with the trees of all files matched by the
transforms; saving writes back every file whose tree changed. Failures that
concern a single file are recorded under ``/augeas/files/<file>/error`` and
do not stop the other files::

    /augeas/files/etc/hosts/path           = /files/etc/hosts
    /augeas/files/etc/hosts/lens           = Hosts.lns
    /augeas/files/etc/hosts/mtime          = 1700000000
    /augeas/files/etc/hosts/error          = parse_failed
    /augeas/files/etc/hosts/error/message  = expected ... (line 3)

Both commands return a negative count when the command itself could not run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import (
    BadArgumentError,
    ConfTreeError,
    LensNotFoundError,
    LensSyntaxError,
    MultipleTransformsError,
)
from .files import matches_globs
from .lenses import Fragment, ParseError, UnparseError

if TYPE_CHECKING:
    from .files import LocalFiles
    from .lenses import Lens, LensLoader
    from .node import TreeNode
    from .store import ConfTree
    from .transforms import Transform, TransformRegistry

logger = logging.getLogger(__name__)

FILES_PATH = '/files'
META_FILES_PATH = '/augeas/files'
EVENTS_PATH = '/augeas/events'
SAVE_MODE_PATH = '/augeas/save'
SPAN_PATH = '/augeas/span'

# Errors left by a save are cleared by the next save; load errors stay.
SAVE_REASONS = frozenset(
    {'put_failed', 'write_failed', 'unlink_failed', 'mxfm_save', 'lens_not_found'}
)

_REASON_CLASSES: dict[str, type[ConfTreeError]] = {
    'mxfm_load': MultipleTransformsError,
    'mxfm_save': MultipleTransformsError,
    'lens_not_found': LensNotFoundError,
}


class SaveMode(str, Enum):
    """How ``save`` writes a modified file."""

    OVERWRITE = 'overwrite'
    BACKUP = 'backup'
    NEWFILE = 'newfile'
    NOOP = 'noop'


@dataclass(frozen=True)
class FileError:
    """A failure recorded for one file during load or save."""

    file: str
    reason: str
    message: str

    @property
    def error_class(self) -> type[ConfTreeError] | None:
        """Error kind matching ``reason``, if it has one."""
        return _REASON_CLASSES.get(self.reason)


class LoadSaveController:
    """Keep ``/files`` consistent with the files on disk."""

    def __init__(
        self,
        tree: ConfTree,
        registry: TransformRegistry,
        lenses: LensLoader,
        files: LocalFiles,
    ) -> None:
        self._tree = tree
        self._registry = registry
        self._lenses = lenses
        self._files = files
        self._loaded: dict[str, str] = {}
        self._files_root = tree.ensure(FILES_PATH)
        self._meta = tree.ensure(META_FILES_PATH)
        self._events = tree.ensure(EVENTS_PATH)
        tree.protect(self._meta)
        tree.protect(self._events)

    # ==================== Load ====================

    def load(self) -> int:
        """Load every file matched by exactly one transform.

        Returns:
            Number of files loaded, or -1 if the files could not be listed.
        """
        self._files_root = self._tree.ensure(FILES_PATH)
        _clear(self._files_root)
        _clear(self._meta)
        self._loaded.clear()
        self._registry.clear_errors()
        spans = self._tree.ensure(SPAN_PATH).value == 'enable'

        try:
            claims = self._claims()
        except OSError as e:
            logger.error("Cannot list files under %s: %s", self._files.root, e)
            return -1

        loaded = 0
        for path, owners in sorted(claims.items()):
            if len(owners) > 1:
                lenses = ' and '.join(transform.lens for transform, _ in owners)
                self._file_error(
                    path, 'mxfm_load', f"Lenses {lenses} could be used to load this file"
                )
                continue
            transform, lens = owners[0]
            if self._load_file(path, transform, lens, spans):
                loaded += 1
        self._files_root.clean()
        logger.info("Loaded %d file(s) from %s", loaded, self._files.root)
        return loaded

    def _claims(self) -> dict[str, list[tuple[Transform, Lens]]]:
        claims: dict[str, list[tuple[Transform, Lens]]] = {}
        for transform in self._registry:
            try:
                lens = self._lenses.lens(transform.lens)
            except (LensNotFoundError, LensSyntaxError) as e:
                logger.warning("Transform %s: %s", transform.name, e)
                self._registry.record_error(transform.name, str(e))
                continue
            for path in self._files.list_files(transform.incl, transform.excl):
                claims.setdefault(path, []).append((transform, lens))
        return claims

    def _load_file(self, path: str, transform: Transform, lens: Lens, spans: bool) -> bool:
        try:
            text = self._files.read(path)
            mtime = self._files.mtime(path)
        except (OSError, UnicodeDecodeError) as e:
            self._file_error(path, 'read_failed', str(e), transform.lens)
            return False
        try:
            fragment = lens.get(text, path, spans)
        except ParseError as e:
            self._file_error(path, 'parse_failed', str(e), transform.lens)
            return False
        node = _walk(self._files_root, path, create=True)
        for child in fragment.nodes:
            node.append(child)
        node.attr['tail'] = fragment.tail
        entry = self._meta_entry(path, transform.lens)
        entry.add('mtime', str(mtime))
        self._loaded[path] = transform.lens
        logger.debug("Loaded %s with %s", path, transform.lens)
        return True

    # ==================== Save ====================

    def save(self) -> int:
        """Write back every modified file and delete removed ones.

        Returns:
            Number of files written or deleted, or -1 if any file failed.

        Raises:
            BadArgumentError: If /augeas/save holds an unknown mode.
        """
        raw_mode = self._tree.ensure(SAVE_MODE_PATH).value or SaveMode.OVERWRITE.value
        try:
            mode = SaveMode(raw_mode)
        except ValueError:
            raise BadArgumentError("Invalid value for /augeas/save", raw_mode) from None
        self._clear_save_errors()
        _clear(self._events)
        self._files_root = self._tree.ensure(FILES_PATH)

        saved = failed = 0
        for path, node in self._file_trees():
            if not node.dirty:
                continue
            outcome = self._save_file(path, node, mode)
            if outcome is None:
                continue
            if outcome:
                saved += 1
            else:
                failed += 1
        for path in sorted(self._loaded):
            if _walk(self._files_root, path) is None:
                if self._delete_file(path, mode):
                    saved += 1
                else:
                    failed += 1
        logger.info("Saved %d file(s), %d failure(s)", saved, failed)
        return -1 if failed else saved

    def _file_trees(self) -> list[tuple[str, TreeNode]]:
        """Return (path, node) for every file tree below /files.

        A node is a file tree if it was loaded from a file or if a transform
        covers its path.
        """
        out: list[tuple[str, TreeNode]] = []

        def visit(node: TreeNode, path: str) -> None:
            if path in self._loaded or self._owners(path):
                out.append((path, node))
                return
            for child in node.children:
                visit(child, f"{path}/{child.label}")

        for child in self._files_root.children:
            visit(child, f"/{child.label}")
        return out

    def _owners(self, path: str) -> list[Transform]:
        return [
            transform for transform in self._registry
            if matches_globs(path, transform.incl, transform.excl)
        ]

    def _save_file(self, path: str, node: TreeNode, mode: SaveMode) -> bool | None:
        """Save one file; None when its text did not change."""
        lens_name = self._loaded.get(path)
        if lens_name is None:
            owners = self._owners(path)
            if len(owners) > 1:
                lenses = ' and '.join(transform.lens for transform in owners)
                self._file_error(
                    path, 'mxfm_save', f"Lenses {lenses} could be used to save this file"
                )
                return False
            lens_name = owners[0].lens
        try:
            lens = self._lenses.lens(lens_name)
        except (LensNotFoundError, LensSyntaxError) as e:
            self._file_error(path, 'lens_not_found', str(e), lens_name)
            return False
        try:
            text = lens.put(Fragment(list(node.children), node.attr.get('tail', '')))
        except UnparseError as e:
            self._file_error(path, 'put_failed', str(e), lens_name)
            return False

        files = self._files
        try:
            if files.exists(path) and files.read(path) == text:
                node.clean()
                return None
            if mode == SaveMode.BACKUP:
                if files.exists(path):
                    files.copy(path, path + '.augsave')
                files.write(path, text)
            elif mode == SaveMode.NEWFILE:
                files.write(path + '.augnew', text)
            elif mode == SaveMode.OVERWRITE:
                files.write(path, text)
            if mode in (SaveMode.OVERWRITE, SaveMode.BACKUP):
                mtime = files.mtime(path)
        except (OSError, UnicodeDecodeError) as e:
            self._file_error(path, 'write_failed', str(e), lens_name)
            return False

        self._events.add('saved', FILES_PATH + path)
        if mode in (SaveMode.OVERWRITE, SaveMode.BACKUP):
            node.clean()
            self._loaded[path] = lens_name
            entry = self._meta_entry(path, lens_name)
            _clear_labelled(entry, 'mtime')
            entry.add('mtime', str(mtime))
        logger.debug("Saved %s (%s)", path, mode.value)
        return True

    def _delete_file(self, path: str, mode: SaveMode) -> bool:
        try:
            if mode == SaveMode.OVERWRITE and self._files.exists(path):
                self._files.remove(path)
            elif mode == SaveMode.BACKUP and self._files.exists(path):
                self._files.rename(path, path + '.augsave')
        except OSError as e:
            self._file_error(path, 'unlink_failed', str(e), self._loaded[path])
            return False
        self._events.add('saved', FILES_PATH + path)
        if mode in (SaveMode.OVERWRITE, SaveMode.BACKUP):
            del self._loaded[path]
            entry = _walk(self._meta, path)
            if entry is not None:
                entry.detach()
        logger.debug("Deleted %s (%s)", path, mode.value)
        return True

    # ==================== Error subtree ====================

    def _meta_entry(self, path: str, lens_name: str | None = None) -> TreeNode:
        entry = _walk(self._meta, path, create=True)
        if entry.child('path') is None:
            entry.add('path', FILES_PATH + path)
        if lens_name and entry.child('lens') is None:
            entry.add('lens', lens_name)
        return entry

    def _file_error(
        self, path: str, reason: str, message: str, lens_name: str | None = None
    ) -> None:
        logger.warning("%s: %s: %s", path, reason, message)
        entry = self._meta_entry(path, lens_name)
        _clear_labelled(entry, 'error')
        entry.add('error', reason).add('message', message)

    def _clear_save_errors(self) -> None:
        for node in list(self._meta.iter_descendants()):
            if node.label == 'error' and node.value in SAVE_REASONS:
                node.detach()

    def file_errors(self) -> list[FileError]:
        """Return the per-file errors recorded by the last load and save."""
        errors = []
        for node in self._meta.iter_descendants():
            if node.label != 'error' or node.parent is None:
                continue
            holder = node.parent.child('path')
            file = holder.value[len(FILES_PATH):] if holder and holder.value else ''
            message = node.child('message')
            errors.append(
                FileError(file, node.value or '', message.value if message else '')
            )
        return errors


def _walk(node: TreeNode, path: str, create: bool = False) -> TreeNode | None:
    """Follow the file path ``path`` label by label below ``node``."""
    for label in path.strip('/').split('/'):
        child = node.child(label)
        if child is None:
            if not create:
                return None
            child = node.add(label)
        node = child
    return node


def _clear(node: TreeNode) -> None:
    for child in list(node.children):
        child.detach()


def _clear_labelled(node: TreeNode, label: str) -> None:
    for child in node.children_labelled(label):
        child.detach()
