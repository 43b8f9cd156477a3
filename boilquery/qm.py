"""Query mods: small objects that each change a Query in one way."""

from __future__ import annotations

from typing import Any, Callable

from . import qmhelper
from .query import Query


class QueryMod:
    """A modification to a query, made by calling a function on it."""

    __slots__ = ("_func",)

    def __init__(self, func: Callable[[Query], None]) -> None:
        self._func = func

    def apply(self, query: Query) -> None:
        self._func(query)


def apply(query: Query, *mods: Any) -> None:
    """Apply each mod to the query in order."""
    for mod in mods:
        mod.apply(query)


def sql(statement: str, *args: Any) -> QueryMod:
    """Use a plain SQL statement for the query."""
    return QueryMod(lambda q: q.set_sql(statement, *args))


def load(relationship: str, *mods: Any) -> QueryMod:
    """Eager load a dotted relationship path, optionally filtered by mods.

    The mods only apply to the last relationship in the path.
    """

    def _apply(q: Query) -> None:
        q.append_load(relationship)
        if mods:
            q.set_load_mods(relationship, QueryMod(lambda inner: apply(inner, *mods)))

    return QueryMod(_apply)


def inner_join(clause: str, *args: Any) -> QueryMod:
    return QueryMod(lambda q: q.append_inner_join(clause, *args))


def with_(clause: str, *args: Any) -> QueryMod:
    """Add a common table expression."""
    return QueryMod(lambda q: q.append_with(clause, *args))


def select(*columns: str) -> QueryMod:
    return QueryMod(lambda q: q.append_select(*columns))


def where(clause: str, *args: Any) -> qmhelper.WhereQueryMod:
    """Add a where clause; several are joined with AND."""
    return qmhelper.WhereQueryMod(clause, list(args))


def and_(clause: str, *args: Any) -> QueryMod:
    return QueryMod(lambda q: q.append_where(clause, *args))


def or_(clause: str, *args: Any) -> QueryMod:
    def _apply(q: Query) -> None:
        q.append_where(clause, *args)
        q.set_last_where_as_or()

    return QueryMod(_apply)


def or2(mod: Any) -> QueryMod:
    """Apply a where mod and join it to what precedes it with OR."""

    def _apply(q: Query) -> None:
        mod.apply(q)
        q.set_last_where_as_or()

    return QueryMod(_apply)


def where_in(clause: str, *args: Any) -> QueryMod:
    """Add an "x IN (set)" clause, e.g. "column in ?" or "(a,b) in ?"."""
    return QueryMod(lambda q: q.append_in(clause, *args))


def and_in(clause: str, *args: Any) -> QueryMod:
    return QueryMod(lambda q: q.append_in(clause, *args))


def or_in(clause: str, *args: Any) -> QueryMod:
    def _apply(q: Query) -> None:
        q.append_in(clause, *args)
        q.set_last_in_as_or()

    return QueryMod(_apply)


def expr(*mods: Any) -> QueryMod:
    """Group where mods in parentheses.

    Once used, where clauses are no longer parenthesised automatically.
    """

    def _apply(q: Query) -> None:
        q.append_where_left_paren()
        apply(q, *mods)
        q.append_where_right_paren()

    return QueryMod(_apply)


def group_by(clause: str) -> QueryMod:
    return QueryMod(lambda q: q.append_group_by(clause))


def order_by(clause: str) -> QueryMod:
    return QueryMod(lambda q: q.append_order_by(clause))


def having(clause: str, *args: Any) -> QueryMod:
    return QueryMod(lambda q: q.append_having(clause, *args))


def from_(table: str) -> QueryMod:
    return QueryMod(lambda q: q.append_from(table))


def _set_attr(name: str, value: Any) -> QueryMod:
    return QueryMod(lambda q: setattr(q, name, value))


def limit(count: int) -> QueryMod:
    return _set_attr("limit", count)


def offset(count: int) -> QueryMod:
    return _set_attr("offset", count)


def for_(clause: str) -> QueryMod:
    """Add a locking clause such as "update" at the end of the statement."""
    return _set_attr("for_lock", clause)


def rels(*relationships: str) -> str:
    """Join relationship names into a dotted path for load()."""
    return ".".join(relationships)