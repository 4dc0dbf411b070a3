# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Error records and their translation into exceptions.

Every session command runs through :meth:`ErrorTranslator.capture`, which
turns its outcome into a :class:`Result`, and :meth:`ErrorTranslator.check`,
which publishes the outcome as the session's error record under
``/augeas/error`` and raises the matching exception on failure.

A command fails when its error record carries a code other than
``NOERROR`` or when it returns a negative integer; the second channel is
reported as :class:`CommandExecutionError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from .exceptions import ERROR_CLASSES, ConfTreeError, ErrorCode, InternalError

if TYPE_CHECKING:
    from .store import ConfTree

ERROR_PATH = '/augeas/error'


@dataclass(frozen=True)
class ErrorRecord:
    """Outcome of the most recent command."""

    code: ErrorCode = ErrorCode.NOERROR
    message: str = ''
    details: str | None = None

    @property
    def ok(self) -> bool:
        return self.code == ErrorCode.NOERROR

    @classmethod
    def from_exception(cls, exc: ConfTreeError) -> ErrorRecord:
        return cls(exc.code, exc.message, exc.details)


@dataclass(frozen=True)
class Result:
    """Value of a command together with its error record."""

    value: Any = None
    record: ErrorRecord = ErrorRecord()
    error: ConfTreeError | None = None


class ErrorTranslator:
    """Keep the session error record and raise typed errors from it.

    Example:
        >>> translator = ErrorTranslator(tree)
        >>> translator.check(translator.capture(tree.get, '/missing'))
        Traceback (most recent call last):
        ...
        NoMatchError: No match for path expression /missing
    """

    def __init__(self, tree: ConfTree) -> None:
        self._node = tree.ensure(ERROR_PATH)
        tree.protect(self._node)
        self.record = ErrorRecord()
        self._project()

    def capture(self, command: Callable[..., Any], *args: Any, **kwargs: Any) -> Result:
        """Run ``command`` and capture its value or its tree error.

        Other exceptions propagate unchanged, after their record is published:
        ``EBADARG`` for argument errors, ``EINTERNAL`` for anything else.
        """
        try:
            value = command(*args, **kwargs)
        except ConfTreeError as exc:
            return Result(record=ErrorRecord.from_exception(exc), error=exc)
        except (TypeError, ValueError) as exc:
            self._publish(ErrorRecord(ErrorCode.EBADARG, "Invalid argument", str(exc)))
            raise
        except Exception as exc:
            self._publish(ErrorRecord(ErrorCode.EINTERNAL, "Internal error", str(exc)))
            raise
        return Result(value)

    def check(self, result: Result) -> Any:
        """Publish the record of ``result`` and return its value.

        Raises:
            ConfTreeError: The subclass mapped from the record's code.
        """
        record = result.record
        value = result.value
        if record.ok and isinstance(value, int) and not isinstance(value, bool) and value < 0:
            record = ErrorRecord(
                ErrorCode.ECMDRUN, "Command failed.", f"Return code was {value}."
            )
        self._publish(record)
        if record.ok:
            return value
        error_class = ERROR_CLASSES.get(record.code, InternalError)
        if isinstance(result.error, error_class):
            raise result.error
        raise error_class(record.message, record.details)

    def _publish(self, record: ErrorRecord) -> None:
        self.record = record
        self._project()

    def _project(self) -> None:
        node = self._node
        for child in list(node.children):
            child.detach()
        node.value = self.record.code.name.lower()
        if not self.record.ok:
            node.add('message', self.record.message)
            if self.record.details:
                node.add('details', self.record.details)
