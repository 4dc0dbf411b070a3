# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ConfTree exceptions.

Every failure the tree engine can report has an :class:`ErrorCode` and one
exception class. The numeric codes follow the Augeas library so that error
records stay comparable with tools built on it.
"""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Kinds of error recorded in the session's error record."""

    NOERROR = 0
    ENOMEM = 1
    EINTERNAL = 2
    EPATHX = 3
    ENOMATCH = 4
    EMMATCH = 5
    ESYNTAX = 6
    ENOLENS = 7
    EMXFM = 8
    ENOSPAN = 9
    EMVDESC = 10
    ECMDRUN = 11
    EBADARG = 12
    ELABEL = 13


class ConfTreeError(Exception):
    """Base exception for ConfTree errors."""

    code = ErrorCode.EINTERNAL

    def __init__(self, message: str = '', details: str | None = None) -> None:
        self.message = message
        self.details = details
        text = f"{message} {details}" if details else message
        super().__init__(text)


class NoMemoryError(ConfTreeError):
    """Raised when the engine runs out of resources."""

    code = ErrorCode.ENOMEM


class InternalError(ConfTreeError):
    """Raised when an internal invariant is violated."""

    code = ErrorCode.EINTERNAL


class InvalidPathError(ConfTreeError):
    """Raised when a path expression is malformed or cannot be created."""

    code = ErrorCode.EPATHX


class NoMatchError(ConfTreeError):
    """Raised when a path expected to match one node matches none."""

    code = ErrorCode.ENOMATCH


class MultipleMatchesError(ConfTreeError):
    """Raised when a path expected to match one node matches several."""

    code = ErrorCode.EMMATCH


class LensSyntaxError(ConfTreeError):
    """Raised when a lens module cannot be compiled."""

    code = ErrorCode.ESYNTAX


class LensNotFoundError(ConfTreeError):
    """Raised when a lens cannot be found on the load path."""

    code = ErrorCode.ENOLENS


class MultipleTransformsError(ConfTreeError):
    """Raised when one file is claimed by more than one transform."""

    code = ErrorCode.EMXFM


class NoSpanInfoError(ConfTreeError):
    """Raised when span information is requested but was not recorded."""

    code = ErrorCode.ENOSPAN


class DescendantError(ConfTreeError):
    """Raised when a node would be moved into its own subtree."""

    code = ErrorCode.EMVDESC


class CommandExecutionError(ConfTreeError):
    """Raised when a load or save command fails as a whole."""

    code = ErrorCode.ECMDRUN


class BadArgumentError(ConfTreeError):
    """Raised on a write into a read-only part of the tree."""

    code = ErrorCode.EBADARG


class LabelError(ConfTreeError):
    """Raised when a label is not acceptable for a node."""

    code = ErrorCode.ELABEL


ERROR_CLASSES: dict[ErrorCode, type[ConfTreeError]] = {
    cls.code: cls
    for cls in (
        NoMemoryError,
        InternalError,
        InvalidPathError,
        NoMatchError,
        MultipleMatchesError,
        LensSyntaxError,
        LensNotFoundError,
        MultipleTransformsError,
        NoSpanInfoError,
        DescendantError,
        CommandExecutionError,
        BadArgumentError,
        LabelError,
    )
}
