"""Helpers for building where clauses."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from .query import Query


class Operator(str, enum.Enum):
    """Comparison operators for where()."""

    EQ = "="
    NEQ = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="


@dataclass
class WhereQueryMod:
    """A query mod that appends a where clause."""

    clause: str
    args: list[Any] = field(default_factory=list)

    def apply(self, query: Query) -> None:
        query.append_where(self.clause, *self.args)


def _is_null(value: Any) -> bool:
    is_zero = getattr(value, "is_zero", None)
    if callable(is_zero):
        return bool(is_zero())
    return value is None


def where_null_eq(name: str, negated: bool, value: Any) -> WhereQueryMod:
    """Equality that turns into "is null" when the value is null."""
    if _is_null(value):
        not_ = "not " if negated else ""
        return WhereQueryMod(f"{name} is {not_}null")

    op = "!=" if negated else "="
    return WhereQueryMod(f"{name} {op} ?", [value])


def where_is_null(name: str) -> WhereQueryMod:
    return WhereQueryMod(f"{name} is null")


def where_is_not_null(name: str) -> WhereQueryMod:
    return WhereQueryMod(f"{name} is not null")


def where(name: str, operator: Operator | str, value: Any) -> WhereQueryMod:
    """Compare a column against a value with the given operator."""
    return WhereQueryMod(f"{name} {Operator(operator).value} ?", [value])