# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Path expression AST models.

These data structures represent a parsed path expression such as
``/files/etc/hosts/*[ipaddr = '127.0.0.1']/alias[last()]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Axis(str, Enum):
    """How a step relates to the nodes selected by the previous step."""

    CHILD = "/"
    DESCENDANT = "//"


class StepKind(str, Enum):
    """What a step selects from each context node."""

    LABEL = "label"
    ANY = "*"
    SELF = "."
    PARENT = ".."


@dataclass(frozen=True)
class Position:
    """Ordinal predicate ``[N]``, 1-based."""

    index: int


@dataclass(frozen=True)
class Last:
    """Predicate ``[last()]``, ``[last()+K]`` or ``[last()-K]``.

    A positive offset addresses a position past the existing siblings and
    never matches; it marks the step as an append target for ``set``.
    """

    offset: int = 0


@dataclass(frozen=True)
class ValueEquals:
    """Predicate ``[path = 'value']``; ``[. = 'value']`` tests the node itself."""

    path: PathExpr
    value: str


Predicate = Union[Position, Last, ValueEquals]


@dataclass(frozen=True)
class Step:
    """A single location step."""

    kind: StepKind
    label: str | None = None
    axis: Axis = Axis.CHILD
    predicates: tuple[Predicate, ...] = ()

    @property
    def is_plain(self) -> bool:
        """True if the step can be used to create a node."""
        return (
            self.kind == StepKind.LABEL
            and self.axis == Axis.CHILD
            and not any(isinstance(p, ValueEquals) for p in self.predicates)
        )

    def __str__(self) -> str:
        if self.kind == StepKind.LABEL:
            text = self.label or ''
        else:
            text = self.kind.value
        for pred in self.predicates:
            text += f"[{_predicate_text(pred)}]"
        return text


@dataclass(frozen=True)
class PathExpr:
    """A full path expression; ``/`` alone is absolute with no steps."""

    absolute: bool
    steps: tuple[Step, ...] = ()

    def prefix(self, length: int) -> PathExpr:
        """Return the expression made of the first ``length`` steps."""
        return PathExpr(self.absolute, self.steps[:length])

    def __str__(self) -> str:
        text = ''
        for i, step in enumerate(self.steps):
            if i or self.absolute or step.axis == Axis.DESCENDANT:
                text += step.axis.value
            text += str(step)
        return text or ('/' if self.absolute else '.')


def _predicate_text(pred: Predicate) -> str:
    if isinstance(pred, Position):
        return str(pred.index)
    if isinstance(pred, Last):
        if pred.offset > 0:
            return f"last()+{pred.offset}"
        if pred.offset < 0:
            return f"last()-{-pred.offset}"
        return "last()"
    return f"{pred.path} = '{pred.value}'"
