"""Turn a Query into SQL text and its arguments."""

from __future__ import annotations

import re
from typing import Any

from .query import JoinKind, Query, WhereKind

_IDENTIFIER = re.compile(
    r'"?[a-z_][_a-z0-9]*"?(?:\."?[_a-z][_a-z0-9]*"?)*', re.IGNORECASE
)
_IN_CLAUSE = re.compile(r"(.*[\s|\)|\?])IN([\s|\(|\?].*)", re.IGNORECASE)
_SMART_QUOTE = re.compile(
    r'"?[a-z_][_a-z0-9\-]*"?(?:\."?[_a-z][_a-z0-9]*"?)*(?:\.\*)?', re.IGNORECASE
)
_QUESTION_OR_ESCAPED = re.compile(r"\\\?|\?")
_UNESCAPED_QUESTION = re.compile(r"(?<!\\)\?")


def ident_quote(lq: str, rq: str, identifier: str) -> str:
    """Quote each part of a dotted identifier, leaving anything else alone."""
    if identifier.lower() == "null" or identifier == "?":
        return identifier
    if not _SMART_QUOTE.fullmatch(identifier):
        return identifier

    parts = []
    for part in identifier.split("."):
        if part[0] == lq or part[-1] == rq or part == "*":
            parts.append(part)
        else:
            parts.append(f"{lq}{part}{rq}")
    return ".".join(parts)


def _quote_all(query: Query, identifiers: list[str]) -> list[str]:
    d = query.dialect
    return [ident_quote(d.lq, d.rq, ident) for ident in identifiers]


def placeholders(use_index_placeholders: bool, count: int, start: int, group: int) -> str:
    """Comma separated placeholders, grouped in parentheses when group > 1."""
    if start == 0 or group == 0:
        raise ValueError("Invalid start or group numbers supplied.")

    out = []
    for i in range(count):
        if i:
            out.append("),(" if group > 1 and i % group == 0 else ",")
        out.append(f"${start + i}" if use_index_placeholders else "?")
    text = "".join(out)
    return f"({text})" if group > 1 else text


def build_query(query: Query) -> tuple[str, list[Any]]:
    """Build the SQL text and arguments, caching them on the query."""
    if query.raw_sql:
        return query.raw_sql, query.raw_args

    if query.delete:
        sql, args = _build_delete(query)
    elif query.update:
        sql, args = _build_update(query)
    else:
        sql, args = _build_select(query)

    query.raw_sql = sql
    query.raw_args = args
    return sql, args


def _build_select(query: Query) -> tuple[str, list[Any]]:
    d = query.dialect
    cte, args = _ctes(query)
    parts = [cte, "SELECT "]

    if d.use_top_clause and query.limit != 0 and query.offset == 0:
        parts.append(f" TOP ({query.limit}) ")

    if query.count:
        parts.append("COUNT(")

    has_select = bool(query.select_cols)
    has_joins = bool(query.joins)
    if has_joins and has_select and not query.count:
        parts.append(", ".join(write_as_statements(query)))
    elif has_select:
        parts.append(", ".join(_quote_all(query, query.select_cols)))
    elif has_joins and not query.count:
        parts.append(", ".join(write_stars(query)))
    else:
        parts.append("*")

    if query.count:
        parts.append(")")

    parts.append(f" FROM {', '.join(_quote_all(query, query.from_))}")

    if query.joins:
        start = len(args) + 1
        pieces = []
        for join in query.joins:
            if join.kind is not JoinKind.INNER:
                raise ValueError("only inner joins are supported")
            pieces.append(f" INNER JOIN {join.clause}")
            args.extend(join.args)
        text = "".join(pieces)
        if d.use_index_placeholders:
            text, _ = convert_question_marks(text, start)
        parts.append(text)

    where, where_args = where_clause(query, len(args) + 1)
    parts.append(where)
    args.extend(where_args)

    modifiers, modifier_args = _modifiers(query, len(args))
    parts.append(modifiers)
    args.extend(modifier_args)

    parts.append(";")
    return "".join(parts), args


def _build_delete(query: Query) -> tuple[str, list[Any]]:
    cte, args = _ctes(query)
    parts = [cte, "DELETE FROM ", ", ".join(_quote_all(query, query.from_))]

    where, where_args = where_clause(query, 1)
    args.extend(where_args)
    parts.append(where)

    modifiers, modifier_args = _modifiers(query, len(args))
    parts.append(modifiers)
    args.extend(modifier_args)

    parts.append(";")
    return "".join(parts), args


def _build_update(query: Query) -> tuple[str, list[Any]]:
    d = query.dialect
    cte, args = _ctes(query)
    parts = [cte, "UPDATE ", ", ".join(_quote_all(query, query.from_))]

    columns = sorted(query.update)
    args.extend(query.update[column] for column in columns)
    sets = ", ".join(
        f"{ident_quote(d.lq, d.rq, column)} = "
        f"{placeholders(d.use_index_placeholders, 1, index, 1)}"
        for index, column in enumerate(columns, start=1)
    )
    parts.append(f" SET {sets}")

    where, where_args = where_clause(query, len(args) + 1)
    args.extend(where_args)
    parts.append(where)

    modifiers, modifier_args = _modifiers(query, len(args))
    parts.append(modifiers)
    args.extend(modifier_args)

    parts.append(";")
    return "".join(parts), args


def _modifiers(query: Query, arg_count: int) -> tuple[str, list[Any]]:
    d = query.dialect
    parts = []
    args: list[Any] = []

    if query.group_by:
        parts.append(f" GROUP BY {', '.join(query.group_by)}")

    if query.havings:
        text = " HAVING " + " AND ".join(h.clause for h in query.havings)
        for having in query.havings:
            args.extend(having.args)
        if d.use_index_placeholders:
            text, _ = convert_question_marks(text, arg_count + 1)
        parts.append(text)

    if query.order_by:
        parts.append(" ORDER BY " + ", ".join(query.order_by))

    if not d.use_top_clause:
        if query.limit != 0:
            parts.append(f" LIMIT {query.limit}")
        if query.offset != 0:
            parts.append(f" OFFSET {query.offset}")
    elif query.offset != 0:
        # OFFSET-FETCH requires an ORDER BY clause; order arbitrarily if none given.
        if not query.order_by:
            parts.append(" ORDER BY (SELECT NULL)")
        parts.append(f" OFFSET {query.offset}")
        if query.limit != 0:
            parts.append(f" FETCH NEXT {query.limit} ROWS ONLY")

    if query.for_lock:
        parts.append(f" FOR {query.for_lock}")

    return "".join(parts), args


def _ctes(query: Query) -> tuple[str, list[Any]]:
    if not query.withs:
        return "", []

    args: list[Any] = []
    for with_ in query.withs:
        args.extend(with_.args)
    text = " " + ", ".join(w.clause for w in query.withs) + " "
    if query.dialect.use_index_placeholders:
        text, _ = convert_question_marks(text, 1)
    return "WITH" + text, args


def write_stars(query: Query) -> list[str]:
    """Select every column of each table (or alias) in the FROM list."""
    d = query.dialect
    cols = []
    for table in query.from_:
        tokens = table.split(" ")
        if len(tokens) == 1:
            cols.append(f"{ident_quote(d.lq, d.rq, tokens[0])}.*")
            continue

        alias, name, ok = parse_from_clause(tokens)
        if not ok:
            return []
        cols.append(f"{ident_quote(d.lq, d.rq, alias or name)}.*")
    return cols


def write_as_statements(query: Query) -> list[str]:
    """Quote select columns and alias dotted ones to their dotted names."""
    d = query.dialect
    cols = []
    for col in query.select_cols:
        if not _IDENTIFIER.fullmatch(col):
            cols.append(col)
            continue

        tokens = col.split(".")
        if len(tokens) == 1:
            cols.append(ident_quote(d.lq, d.rq, col))
            continue

        alias = ".".join(token.strip('"') for token in tokens)
        cols.append(f'{ident_quote(d.lq, d.rq, col)} as "{alias}"')
    return cols


def where_clause(query: Query, start_at: int) -> tuple[str, list[Any]]:
    """Render the WHERE expressions, numbering placeholders from start_at."""
    if not query.wheres:
        return "", []

    d = query.dialect
    manual_parens = any(
        w.kind in (WhereKind.LEFT_PAREN, WhereKind.RIGHT_PAREN) for w in query.wheres
    )
    open_paren, close_paren = ("", "") if manual_parens else ("(", ")")

    parts = [" WHERE "]
    args: list[Any] = []
    not_first = False
    for where in query.wheres:
        if not_first and where.kind is not WhereKind.RIGHT_PAREN:
            parts.append(" OR " if where.or_separator else " AND ")
        else:
            not_first = True

        if where.kind is WhereKind.NORMAL:
            clause = where.clause
            if d.use_index_placeholders:
                clause, n = convert_question_marks(clause, start_at)
                start_at += n
            parts.append(f"{open_paren}{clause}{close_paren}")
            args.extend(where.args)
        elif where.kind is WhereKind.LEFT_PAREN:
            parts.append("(")
            not_first = False
        elif where.kind is WhereKind.RIGHT_PAREN:
            parts.append(")")
        else:
            total = len(where.args)
            match = _IN_CLAUSE.fullmatch(where.clause)
            if match is None:
                clause, count = convert_in_question_marks(
                    d.use_index_placeholders, where.clause, start_at, 1, total
                )
                parts.append(f"{open_paren}{clause}{close_paren}")
                args.extend(where.args)
                start_at += count
                continue

            left_side = match.group(1).strip()
            right_side = match.group(2).strip()
            cols = _quote_all(query, left_side.split(","))
            group_at = len(cols)

            left_clause = ",".join(cols)
            if d.use_index_placeholders:
                left_clause, left_count = convert_question_marks(left_clause, start_at)
            else:
                left_count = cols.count("?")
            right_clause, right_count = convert_in_question_marks(
                d.use_index_placeholders,
                right_side,
                start_at + left_count,
                group_at,
                total - left_count,
            )
            parts.append(f"{open_paren}{left_clause} IN {right_clause}{close_paren}")
            start_at += left_count + right_count
            args.extend(where.args)

    return "".join(parts), args


def convert_in_question_marks(
    use_index_placeholders: bool, clause: str, start_at: int, group_at: int, total: int
) -> tuple[str, int]:
    """Expand the first unescaped ? into a parenthesised placeholder list."""
    if start_at == 0 or not clause:
        raise ValueError("Not a valid start number.")

    found = _UNESCAPED_QUESTION.search(clause)
    if found is None:
        return clause.replace("\\?", "?"), 0

    at = found.start()
    expanded = (
        clause[:at]
        + "("
        + placeholders(use_index_placeholders, total, start_at, group_at)
        + ")"
        + clause[at + 1 :]
    )
    return expanded.replace("\\?", "?"), total


def convert_question_marks(clause: str, start_at: int) -> tuple[str, int]:
    """Number each unescaped ? as $n from start_at; unescape the \\? ones."""
    if start_at == 0:
        raise ValueError("Not a valid start number.")

    numbers = iter(range(start_at, start_at + len(clause) + 1))
    total = 0

    def replace(match: re.Match[str]) -> str:
        nonlocal total
        if match.group() == "?":
            total += 1
            return f"${next(numbers)}"
        return "?"

    return _QUESTION_OR_ESCAPED.sub(replace, clause), total


def parse_from_clause(tokens: list[str]) -> tuple[str, str, bool]:
    """Parse "a", "a b" or "a as b" into (alias, name, ok)."""
    alias = name = ""
    ok = False
    saw_ident = saw_as = False
    for token in tokens[:3]:
        lowered = token.lower()
        if saw_ident and lowered == "as":
            saw_as = True
            continue
        if saw_ident and lowered == "on":
            break
        if not _IDENTIFIER.fullmatch(token):
            break
        if saw_ident or saw_as:
            alias = token.strip('"')
            break
        name = token.strip('"')
        saw_ident = True
        ok = True
    return alias, name, ok