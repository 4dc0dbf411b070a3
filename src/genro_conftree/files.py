# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Rooted file access for load and save.

Paths handled here are absolute paths as they appear in the tree below
``/files`` (e.g. '/etc/hosts'); they are resolved under the session root.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable

logger = logging.getLogger(__name__)


def excluded(path: str, excl: Iterable[str]) -> bool:
    """True if ``path`` matches an exclude glob.

    Globs without a '/' are matched against the file name only, so that
    '*.augnew' excludes backup files in every directory.
    """
    name = PurePosixPath(path).name
    for pattern in excl:
        target = path if '/' in pattern else name
        if fnmatch.fnmatchcase(target, pattern):
            return True
    return False


def matches_globs(path: str, incl: Iterable[str], excl: Iterable[str]) -> bool:
    """True if ``path`` is selected by ``incl`` and not removed by ``excl``."""
    pure = PurePosixPath(path)
    if not any(pure.match(pattern) for pattern in incl):
        return False
    return not excluded(path, excl)


class LocalFiles:
    """Files below a root directory on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"LocalFiles({str(self.root)!r})"

    def real(self, path: str) -> Path:
        """Return the filesystem path for the tree path ``path``."""
        return self.root / path.lstrip('/')

    def list_files(self, incl: Iterable[str], excl: Iterable[str] = ()) -> list[str]:
        """Return the files matched by ``incl`` minus ``excl``, sorted.

        Raises:
            FileNotFoundError: If the root directory does not exist.
        """
        if not self.root.is_dir():
            raise FileNotFoundError(f"Root directory {self.root} does not exist")
        excl = list(excl)
        found: set[str] = set()
        for pattern in incl:
            relative = pattern.lstrip('/')
            if not relative:
                continue
            for real in self.root.glob(relative):
                if not real.is_file():
                    continue
                path = '/' + real.relative_to(self.root).as_posix()
                if not excluded(path, excl):
                    found.add(path)
        return sorted(found)

    def exists(self, path: str) -> bool:
        return self.real(path).is_file()

    def read(self, path: str) -> str:
        return self.real(path).read_text(encoding='utf-8')

    def write(self, path: str, text: str) -> None:
        real = self.real(path)
        real.parent.mkdir(parents=True, exist_ok=True)
        real.write_text(text, encoding='utf-8')
        logger.debug("Wrote %s", real)

    def copy(self, path: str, target: str) -> None:
        shutil.copy2(self.real(path), self.real(target))

    def rename(self, path: str, target: str) -> None:
        os.replace(self.real(path), self.real(target))

    def remove(self, path: str) -> None:
        self.real(path).unlink()
        logger.debug("Removed %s", self.real(path))

    def mtime(self, path: str) -> int:
        return int(self.real(path).stat().st_mtime)
