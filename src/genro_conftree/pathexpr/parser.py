# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Path expression parser (Lark).

Supported syntax:
- Absolute ``/a/b``, root ``/``, relative ``a/b``
- Descendant steps ``//a`` and ``a//b``
- Steps: a label, ``*``, ``.`` (self) or ``..`` (parent)
- Predicates: ``[N]``, ``[last()]``, ``[last()+K]``, ``[last()-K]``,
  ``[path = 'value']`` and ``[. = 'value']``

A backslash escapes any character in a label, e.g. ``/files/my\\ file``.
Whitespace is insignificant outside labels.
"""

from __future__ import annotations

import re
from dataclasses import replace
from functools import lru_cache
from typing import Any

from lark import Lark, Token, Transformer, UnexpectedInput
from lark.exceptions import VisitError

from ..exceptions import InvalidPathError
from .ast import Axis, Last, PathExpr, Position, Step, StepKind, ValueEquals


_GRAMMAR = r"""
start: SLASH                -> root
     | SLASH steps          -> absolute
     | DSLASH steps         -> absolute_descendant
     | steps                -> relative

steps: step (sep step)*
?sep: SLASH | DSLASH

step: (NAME | STAR) predicate*

predicate: "[" INT "]"                  -> position
         | "[" LAST "]"                 -> last
         | "[" LAST PLUS INT "]"        -> last_plus
         | "[" LAST MINUS INT "]"       -> last_minus
         | "[" steps "=" STRING "]"     -> value_eq

SLASH: "/"
DSLASH: "//"
STAR: "*"
LAST.3: "last()"
PLUS: "+"
MINUS: "-"
INT.2: /[0-9]+/
NAME: /(\\.|[^\/\[\]\*\s=()'"\\])+/
STRING: /'[^']*'|"[^"]*"/

%import common.WS
%ignore WS
"""


_parser = Lark(_GRAMMAR, parser="lalr", start="start")

_ESCAPE = re.compile(r'\\(.)')


class _ToAst(Transformer):
    def INT(self, t: Token) -> int:  # noqa: N802
        return int(str(t))

    def STRING(self, t: Token) -> str:  # noqa: N802
        return str(t)[1:-1]

    def position(self, items: list[Any]) -> Position:
        return Position(items[0])

    def last(self, _items: list[Any]) -> Last:
        return Last(0)

    def last_plus(self, items: list[Any]) -> Last:
        return Last(items[2])

    def last_minus(self, items: list[Any]) -> Last:
        return Last(-items[2])

    def value_eq(self, items: list[Any]) -> ValueEquals:
        return ValueEquals(PathExpr(False, items[0]), items[1])

    def step(self, items: list[Any]) -> Step:
        token, predicates = items[0], tuple(items[1:])
        raw = str(token)
        if token.type == "STAR":
            return Step(StepKind.ANY, predicates=predicates)
        if raw in (".", ".."):
            if predicates:
                raise InvalidPathError(f"predicates are not allowed on '{raw}'")
            return Step(StepKind(raw))
        return Step(StepKind.LABEL, _ESCAPE.sub(r'\1', raw), predicates=predicates)

    def steps(self, items: list[Any]) -> tuple[Step, ...]:
        out = [items[0]]
        for sep, step in zip(items[1::2], items[2::2]):
            axis = Axis.DESCENDANT if sep.type == "DSLASH" else Axis.CHILD
            out.append(replace(step, axis=axis))
        return tuple(out)

    def root(self, _items: list[Any]) -> PathExpr:
        return PathExpr(True)

    def absolute(self, items: list[Any]) -> PathExpr:
        return PathExpr(True, items[1])

    def absolute_descendant(self, items: list[Any]) -> PathExpr:
        first, *rest = items[1]
        return PathExpr(True, (replace(first, axis=Axis.DESCENDANT), *rest))

    def relative(self, items: list[Any]) -> PathExpr:
        return PathExpr(False, items[0])


@lru_cache(maxsize=512)
def parse_path(path: str) -> PathExpr:
    """
    Parse a path expression into its AST.

    Raises:
        InvalidPathError
    """
    if not path or not path.strip():
        raise InvalidPathError("Invalid path expression", "empty path")
    try:
        tree = _parser.parse(path)
        return _ToAst().transform(tree)
    except UnexpectedInput as e:
        raise InvalidPathError(
            "Invalid path expression", f"{path!r} at position {e.column}"
        ) from e
    except VisitError as e:
        if isinstance(e.orig_exc, InvalidPathError):
            raise InvalidPathError(
                "Invalid path expression", f"{path!r}: {e.orig_exc.message}"
            ) from e.orig_exc
        raise
