# boilquery

A small toolkit for building SQL statements from composable query mods,
eager loading relationships onto objects, comparing and assigning nullable
database values, and producing deterministic test values.

## Install

```
pip install boilquery
```

To run the test suite:

```
pip install "boilquery[test]"
pytest
```

## Building queries

A `Query` (in `boilquery.query`) collects the parts of a statement. Query mods
from `boilquery.qm` add to it, and `boilquery.builders.build_query` turns it
into SQL text and a list of arguments.

```python
from boilquery import qm
from boilquery.builders import build_query
from boilquery.query import Dialect, Query

q = Query(dialect=Dialect(lq='"', rq='"', use_index_placeholders=True))
qm.apply(
    q,
    qm.from_("videos"),
    qm.where("deleted = ?", False),
    qm.or_in("user_id in ?", 1, 2, 3),
    qm.order_by("created_at DESC"),
    qm.limit(10),
)

sql, args = build_query(q)
# SELECT * FROM "videos" WHERE (deleted = $1) OR ("user_id" IN ($2,$3,$4))
#   ORDER BY created_at DESC LIMIT 10;
# args == [False, 1, 2, 3]
```

The query produced is a SELECT by default; `Query.delete = True` makes it a
DELETE, and a non-empty `Query.update` mapping makes it an UPDATE with the
columns set in sorted order. `qm.with_` adds common table expressions,
`qm.inner_join`, `qm.group_by`, `qm.having`, `qm.offset` and `qm.for_` add the
matching clauses. The built text and arguments are cached on the query, so a
second `build_query` returns them unchanged; `Query.set_args` swaps in new
arguments for the same text.

Grouped conditions use `qm.expr`, and `qm.or2` turns any where mod into an OR:

```python
qm.apply(q, qm.where("a = ?", 1), qm.or2(qm.expr(qm.where("b = ? and c = ?", 2, 3))))
# WHERE a=$1 OR (b=$2 and c=$3)
```

Once `qm.expr` is used, where clauses are no longer wrapped in parentheses
automatically. A `?` written as `\?` is left as a literal question mark.

Use `qm.sql`, `Query.set_sql` or `raw` for hand-written SQL; the text and
arguments are then returned as given. `Dialect` controls identifier quoting,
numbered (`$1`) versus `?` placeholders, and whether `TOP` and
`OFFSET ... FETCH NEXT` are used in place of `LIMIT`/`OFFSET`.

`boilquery.qmhelper` offers helpers that return a `WhereQueryMod`:
`where(name, Operator.GT, value)`, `where_is_null(name)`,
`where_is_not_null(name)` and `where_null_eq(name, negated, value)`, which
becomes `name is null` when the value is `None` or has an `is_zero()` that
returns true.

## Eager loading

`qm.load("Videos.Tags", *mods)` records relationship paths on the query
(`qm.rels("Videos", "Tags")` builds the same dotted path).
`boilquery.eager_load.eager_load(conn, to_load, mods, obj, singular)` walks
those paths level by level over objects you already have. Each object carries
an `R` attribute holding loaded relationships and an `L` loader whose
`load_<relationship>(conn, singular, obj, mods)` methods fill `R` in, either
for one object or for a list. Each level is loaded once, children are gathered
with `collect_loaded` before descending, and failures raise `EagerLoadError`.

## Comparing and assigning values

`boilquery.values` works with nullable wrapper types that implement the
`Valuer` (`value()`) and `Scanner` (`scan(value)`) protocols:
`equal(a, b)` compares primitives through valuers and raises `TypeError` when
their types differ; `assign(dst, src)` scans into a scanner or returns the
converted value; `must_time`, `is_valuer_nil`, `is_nil` and `set_scanner`
cover the remaining cases.

## Test values

`boilquery.randomvalues` turns a counter into values that do not collide:

```python
import itertools
from boilquery import randomvalues

next_int = itertools.count(1).__next__
randomvalues.text(next_int, 8)
randomvalues.formatted_string(next_int, "interval")   # e.g. "4 days"
randomvalues.enum_value(next_int, "enum('monday','tuesday')")
randomvalues.date(next_int)
randomvalues.stable_db_name("awesomedb")              # same 40 letters every time
```

`formatted_string` knows enums, json, uuid, interval, cidr/inet, macaddr,
pg_lsn, txid_snapshot, money and time, and returns `None` for other types.

## What this package does not do

It does not talk to a database: it builds SQL text and arguments, and running
them and reading the result rows is left to your own connection code. It does
not map result rows onto objects, and it does not fill whole objects with
test data; it only supplies the individual test values above.