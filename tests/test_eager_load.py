from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import pytest

from boilquery.eager_load import EagerLoadError, collect_loaded, eager_load

CALLS: Counter = Counter()
RECEIVED: dict[str, tuple[Any, Any]] = {}


@pytest.fixture(autouse=True)
def _reset():
    CALLS.clear()
    RECEIVED.clear()


def _targets(singular, obj):
    return [obj] if singular else obj


@dataclass
class NestedR:
    pass


class NestedL:
    pass


@dataclass
class Nested:
    id: int = 0
    R: NestedR | None = None
    L: NestedL = field(default_factory=NestedL)


@dataclass
class ChildR:
    nested_one: Nested | None = None
    nested_many: list[Nested] | None = None


class ChildL:
    def load_nested_one(self, conn, singular, obj, mods):
        RECEIVED["nested_one"] = (conn, mods)
        for o in _targets(singular, obj):
            o.R = o.R or ChildR()
            o.R.nested_one = Nested(id=21)
        CALLS["nested_one"] += 1

    def load_nested_many(self, conn, singular, obj, mods):
        for o in _targets(singular, obj):
            o.R = o.R or ChildR()
            o.R.nested_many = [Nested(id=22), Nested(id=23)]
        CALLS["nested_many"] += 1


@dataclass
class Child:
    id: int = 0
    R: ChildR | None = None
    L: ChildL = field(default_factory=ChildL)


@dataclass
class ZeroR:
    nested_one: Nested | None = None
    nested_many: list[Nested] | None = None


class ZeroL:
    def load_nested_one(self, conn, singular, obj, mods):
        return None

    def load_nested_many(self, conn, singular, obj, mods):
        return None


@dataclass
class Zero:
    id: int = 0
    R: ZeroR | None = None
    L: ZeroL = field(default_factory=ZeroL)


@dataclass
class EagerR:
    child_one: Child | None = None
    child_many: list[Child] | None = None
    zero_one: Zero | None = None
    zero_many: list[Zero] | None = None


class EagerL:
    def load_child_one(self, conn, singular, obj, mods):
        for o in _targets(singular, obj):
            o.R = o.R or EagerR()
            o.R.child_one = Child(id=11)
        CALLS["child_one"] += 1

    def load_child_many(self, conn, singular, obj, mods):
        RECEIVED["child_many"] = (conn, mods)
        for o in _targets(singular, obj):
            o.R = o.R or EagerR()
            o.R.child_many = [Child(id=12), Child(id=13)]
        CALLS["child_many"] += 1

    def load_zero_one(self, conn, singular, obj, mods):
        for o in _targets(singular, obj):
            o.R = o.R or EagerR()

    def load_zero_many(self, conn, singular, obj, mods):
        for o in _targets(singular, obj):
            o.R = o.R or EagerR()
            o.R.zero_many = []


@dataclass
class Eager:
    id: int = 0
    R: EagerR | None = None
    L: Any = field(default_factory=EagerL)


TO_LOAD = [
    "child_one.nested_many",
    "child_one.nested_one",
    "child_many.nested_many",
    "child_many.nested_one",
]
ZERO_LOAD = [
    "zero_many.nested_many",
    "zero_one.nested_one",
    "zero_many.nested_many",
    "zero_one.nested_one",
]

EXPECTED_IDS = {
    "child_one": 11,
    "child_many": [12, 13],
    "nested_one": [21, 21, 21],
    "nested_many": [[22, 23], [22, 23], [22, 23]],
}
EXPECTED_CALLS = {"child_one": 1, "child_many": 1, "nested_one": 2, "nested_many": 2}


def _loaded_ids(obj):
    children = [obj.R.child_one, *obj.R.child_many]
    return {
        "child_one": obj.R.child_one.id,
        "child_many": [c.id for c in obj.R.child_many],
        "nested_one": [c.R.nested_one.id for c in children],
        "nested_many": [[n.id for n in c.R.nested_many] for c in children],
    }


def test_eager_load_from_one():
    obj = Eager()
    eager_load(None, TO_LOAD, None, obj, True)

    assert dict(CALLS) == EXPECTED_CALLS
    assert _loaded_ids(obj) == EXPECTED_IDS


def test_eager_load_from_many():
    objs = [Eager(id=-1), Eager(id=-2)]
    eager_load(None, TO_LOAD, None, objs, False)

    assert dict(CALLS) == EXPECTED_CALLS
    assert [_loaded_ids(obj) for obj in objs] == [EXPECTED_IDS, EXPECTED_IDS]
    assert [obj.id for obj in objs] == [-1, -2]


def test_eager_load_zero_parents():
    obj = Eager()
    eager_load(None, ZERO_LOAD, None, obj, True)

    assert obj.R.zero_many == []
    assert obj.R.zero_one is None


def test_eager_load_zero_parents_many():
    objs = [Eager(), Eager()]
    eager_load(None, ZERO_LOAD, None, objs, False)

    for obj in objs:
        assert obj.R.zero_many == []
        assert obj.R.zero_one is None


def test_collect_loaded_nils():
    objs = [Eager(R=EagerR()), Eager(R=EagerR())]

    many = collect_loaded("child_many", objs)
    assert all(c is not None for c in many)
    assert many == []

    one = collect_loaded("child_one", objs)
    assert all(c is not None for c in one)
    assert one == []


def test_collect_loaded_flattens():
    a, b, c = Child(id=1), Child(id=2), Child(id=3)
    objs = [Eager(R=EagerR(child_many=[a, b])), Eager(R=EagerR(child_many=[c]))]
    assert collect_loaded("child_many", objs) == [a, b, c]

    singles = [Eager(R=EagerR(child_one=a)), Eager(R=EagerR()), Eager(R=EagerR(child_one=c))]
    assert collect_loaded("child_one", singles) == [a, c]


def test_collect_loaded_without_relationships():
    with pytest.raises(EagerLoadError, match="relationship struct was nil"):
        collect_loaded("child_many", [Eager()])


def test_mods_and_connection_are_passed_to_loaders():
    conn = object()
    marker = object()
    obj = Eager()
    eager_load(conn, ["child_many.nested_one"], {"child_many.nested_one": marker}, obj, True)

    assert RECEIVED["child_many"] == (conn, None)
    assert RECEIVED["nested_one"] == (conn, marker)
    assert [c.R.nested_one.id for c in obj.R.child_many] == [21, 21]


def test_none_object_loads_nothing():
    result = eager_load(None, TO_LOAD, None, None, True)
    assert result is None
    assert sum(CALLS.values()) == 0


def test_missing_loader():
    @dataclass
    class Bare:
        R: Any = None

    with pytest.raises(EagerLoadError, match="no L struct"):
        eager_load(None, ["child_one"], None, Bare(), True)


def test_missing_load_method():
    with pytest.raises(EagerLoadError, match="load_unknown"):
        eager_load(None, ["unknown"], None, Eager(), True)


def test_loader_failure_is_wrapped():
    class FailingL:
        def load_child_one(self, conn, singular, obj, mods):
            raise RuntimeError("boom")

    with pytest.raises(EagerLoadError, match="failed to eager load child_one") as info:
        eager_load(None, ["child_one"], None, Eager(L=FailingL()), True)
    assert isinstance(info.value.__cause__, RuntimeError)