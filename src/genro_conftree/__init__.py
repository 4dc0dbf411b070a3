# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-ConfTree - Configuration files as an editable, path-addressable tree.

Configuration files are loaded through lenses into one hierarchical tree,
edited with path expressions and written back with their formatting kept.
"""

__version__ = "0.1.0"

from .exceptions import (
    BadArgumentError,
    CommandExecutionError,
    ConfTreeError,
    DescendantError,
    ErrorCode,
    InternalError,
    InvalidPathError,
    LabelError,
    LensNotFoundError,
    LensSyntaxError,
    MultipleMatchesError,
    MultipleTransformsError,
    NoMatchError,
    NoMemoryError,
    NoSpanInfoError,
)
from .lenses import Fragment, Lens, LineLens
from .loader import FileError, SaveMode
from .node import Span, TreeNode
from .session import Flags, Session, SessionConfig
from .store import ConfTree
from .transforms import Transform
from .translator import ErrorRecord

__all__ = [
    # Session
    "Session",
    "SessionConfig",
    "Flags",
    "SaveMode",
    # Tree
    "ConfTree",
    "TreeNode",
    "Span",
    # Transforms and lenses
    "Transform",
    "Lens",
    "LineLens",
    "Fragment",
    # Errors
    "ErrorCode",
    "ErrorRecord",
    "FileError",
    "ConfTreeError",
    "NoMemoryError",
    "InternalError",
    "InvalidPathError",
    "NoMatchError",
    "MultipleMatchesError",
    "LensSyntaxError",
    "LensNotFoundError",
    "MultipleTransformsError",
    "NoSpanInfoError",
    "DescendantError",
    "CommandExecutionError",
    "BadArgumentError",
    "LabelError",
]
