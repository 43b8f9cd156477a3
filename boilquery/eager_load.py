"""Eager loading of relationships onto objects that were already bound.

An object that can have relationships loaded onto it carries two attributes:
``R``, which holds the loaded relationships, and ``L``, a loader whose
``load_<relationship>(conn, singular, obj, mods)`` methods fill ``R`` in for
a single object (``singular`` true) or for a list of objects.
"""

from __future__ import annotations

from typing import Any, Mapping

RELATIONSHIP_ATTR = "R"
LOADER_ATTR = "L"
LOAD_METHOD_PREFIX = "load_"

_MISSING = object()


class EagerLoadError(Exception):
    """A relationship could not be eager loaded."""


def _find_relationships(obj: Any) -> Any:
    relationships = getattr(obj, RELATIONSHIP_ATTR, _MISSING)
    if relationships is _MISSING:
        raise EagerLoadError("relationship struct was invalid")
    if relationships is None:
        raise EagerLoadError("relationship struct was nil")
    return relationships


def _loaded_value(relationships: Any, key: str) -> Any:
    try:
        return getattr(relationships, key)
    except AttributeError as err:
        raise EagerLoadError(
            f"relationship {key} not found on {type(relationships).__name__}"
        ) from err


def _is_many(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class _LoadState:
    def __init__(self, conn: Any, mods: Mapping[str, Any] | None) -> None:
        self.conn = conn
        self.mods = mods or {}
        self.loaded: set[str] = set()
        self.path: list[str] = []

    def key(self, depth: int) -> str:
        return ".".join(self.path[: depth + 1])

    def load(self, depth: int, obj: Any, singular: bool) -> None:
        """Load the relationship at depth, then descend to the next level."""
        if obj is None:
            return

        if self.key(depth) not in self.loaded:
            self.call_loader(depth, obj, singular)

        if depth + 1 >= len(self.path):
            return

        if singular:
            self.recurse(depth, obj)
            return

        if not obj:
            return

        collected = collect_loaded(self.path[depth], obj)
        if not collected:
            return
        self.load(depth + 1, collected, False)

    def call_loader(self, depth: int, obj: Any, singular: bool) -> None:
        current = self.path[depth]

        sample = obj
        if not singular:
            if not obj:
                return
            sample = obj[0]
            if sample is None:
                return

        loader = getattr(sample, LOADER_ATTR, _MISSING)
        if loader is _MISSING:
            raise EagerLoadError(f"attempted to load {current} but no L struct was found")

        method = getattr(loader, LOAD_METHOD_PREFIX + current, None)
        if method is None:
            raise EagerLoadError(
                f"could not find {LOAD_METHOD_PREFIX}{current} method for eager loading"
            )

        try:
            method(self.conn, singular, obj, self.mods.get(self.key(depth)))
        except Exception as err:
            raise EagerLoadError(f"failed to eager load {current}: {err}") from err

        self.loaded.add(self.key(depth))

    def recurse(self, depth: int, obj: Any) -> None:
        key = self.path[depth]
        try:
            relationships = _find_relationships(obj)
        except EagerLoadError as err:
            raise EagerLoadError(f"failed to append loaded {key}: {err}") from err

        loaded = _loaded_value(relationships, key)
        if loaded is None:
            return
        self.load(depth + 1, loaded, not _is_many(loaded))


def eager_load(
    conn: Any,
    to_load: list[str],
    mods: Mapping[str, Any] | None,
    obj: Any,
    singular: bool,
) -> None:
    """Load each dotted relationship path in to_load onto obj.

    obj is a single object when singular is true, otherwise a list of them.
    mods maps a dotted path to the query mods its loader receives.
    """
    state = _LoadState(conn, mods)
    for path in to_load:
        state.path = path.split(".")
        state.load(0, obj, singular)


def collect_loaded(key: str, loading_from: list[Any]) -> list[Any]:
    """Gather the objects loaded under key across every object in loading_from."""
    collection: list[Any] = []
    for item in loading_from:
        try:
            relationships = _find_relationships(item)
        except EagerLoadError as err:
            raise EagerLoadError(f"failed to collect loaded {key}: {err}") from err

        loaded = _loaded_value(relationships, key)
        if _is_many(loaded):
            collection.extend(loaded)
        elif loaded is not None:
            collection.append(loaded)
    return collection