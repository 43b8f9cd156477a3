"""The query object and the operations that build it up."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Protocol


class _Applicator(Protocol):
    def apply(self, query: Query) -> None: ...


@dataclass(frozen=True)
class Dialect:
    """Quoting and placeholder conventions of an SQL dialect."""

    lq: str = '"'
    rq: str = '"'
    use_index_placeholders: bool = False
    use_top_clause: bool = False


class JoinKind(enum.Enum):
    INNER = enum.auto()
    OUTER_LEFT = enum.auto()
    OUTER_RIGHT = enum.auto()
    NATURAL = enum.auto()


class WhereKind(enum.Enum):
    NORMAL = enum.auto()
    LEFT_PAREN = enum.auto()
    RIGHT_PAREN = enum.auto()
    IN = enum.auto()


@dataclass
class Where:
    """One piece of a WHERE expression."""

    clause: str = ""
    args: list[Any] = field(default_factory=list)
    kind: WhereKind = WhereKind.NORMAL
    or_separator: bool = False


@dataclass
class Join:
    clause: str
    args: list[Any] = field(default_factory=list)
    kind: JoinKind = JoinKind.INNER


@dataclass
class Having:
    clause: str
    args: list[Any] = field(default_factory=list)


@dataclass
class With:
    clause: str
    args: list[Any] = field(default_factory=list)


@dataclass
class Query:
    """The state of a query as it is built up."""

    dialect: Dialect = field(default_factory=Dialect)
    raw_sql: str = ""
    raw_args: list[Any] = field(default_factory=list)

    load: list[str] = field(default_factory=list)
    load_mods: dict[str, _Applicator] = field(default_factory=dict)

    delete: bool = False
    update: dict[str, Any] = field(default_factory=dict)
    withs: list[With] = field(default_factory=list)
    select_cols: list[str] = field(default_factory=list)
    count: bool = False
    from_: list[str] = field(default_factory=list)
    joins: list[Join] = field(default_factory=list)
    wheres: list[Where] = field(default_factory=list)
    group_by: list[str] = field(default_factory=list)
    order_by: list[str] = field(default_factory=list)
    havings: list[Having] = field(default_factory=list)
    limit: int = 0
    offset: int = 0
    for_lock: str = ""

    def set_sql(self, sql: str, *args: Any) -> None:
        """Replace the query with raw SQL and its arguments."""
        self.raw_sql = sql
        self.raw_args = list(args)

    def set_args(self, *args: Any) -> None:
        """Replace only the arguments, keeping the SQL text for reuse."""
        self.raw_args = list(args)

    def set_load(self, *relationships: str) -> None:
        self.load = list(relationships)

    def append_load(self, relationship: str) -> None:
        self.load.append(relationship)

    def set_load_mods(self, relationship: str, applicator: _Applicator) -> None:
        self.load_mods[relationship] = applicator

    def append_select(self, *columns: str) -> None:
        self.select_cols.extend(columns)

    def append_from(self, *tables: str) -> None:
        self.from_.extend(tables)

    def set_from(self, *tables: str) -> None:
        self.from_ = list(tables)

    def append_inner_join(self, clause: str, *args: Any) -> None:
        self.joins.append(Join(clause, list(args), JoinKind.INNER))

    def append_having(self, clause: str, *args: Any) -> None:
        self.havings.append(Having(clause, list(args)))

    def append_where(self, clause: str, *args: Any) -> None:
        self.wheres.append(Where(clause, list(args)))

    def append_in(self, clause: str, *args: Any) -> None:
        self.wheres.append(Where(clause, list(args), WhereKind.IN))

    def set_last_where_as_or(self) -> None:
        """Join the last where expression (or parenthesised group) with OR."""
        if not self.wheres:
            return
        last = self.wheres[-1]
        if last.kind is not WhereKind.RIGHT_PAREN:
            last.or_separator = True
            return

        depth = 0
        for where in reversed(self.wheres[:-1]):
            if where.kind is WhereKind.LEFT_PAREN:
                if depth == 0:
                    where.or_separator = True
                    return
                depth -= 1
            elif where.kind is WhereKind.RIGHT_PAREN:
                depth += 1

        raise ValueError("could not find matching ( in where query expr")

    def set_last_in_as_or(self) -> None:
        self.set_last_where_as_or()

    def append_where_left_paren(self) -> None:
        self.wheres.append(Where(kind=WhereKind.LEFT_PAREN))

    def append_where_right_paren(self) -> None:
        self.wheres.append(Where(kind=WhereKind.RIGHT_PAREN))

    def append_group_by(self, clause: str) -> None:
        self.group_by.append(clause)

    def append_order_by(self, clause: str) -> None:
        self.order_by.append(clause)

    def append_with(self, clause: str, *args: Any) -> None:
        self.withs.append(With(clause, list(args)))


def raw(sql: str, *args: Any) -> Query:
    """Make a query from raw SQL."""
    return Query(raw_sql=sql, raw_args=list(args))