"""Comparison and assignment helpers for database values."""

from __future__ import annotations

import datetime
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Valuer(Protocol):
    """Something that can produce a plain database value (None for null)."""

    def value(self) -> Any: ...


@runtime_checkable
class Scanner(Protocol):
    """Something that can take a plain database value into itself."""

    def scan(self, value: Any) -> None: ...


_PRIMITIVES = (bool, int, float, str, bytes, datetime.datetime, datetime.date)
_SCALARS = (bool, int, float, str, bytes)


def _call_value(valuer: Any, label: str) -> Any:
    try:
        return valuer.value()
    except Exception as err:
        raise ValueError(
            f"calling value() on {label} ({type(valuer).__name__}) failed: {err}"
        ) from err


def _call_scan(scanner: Any, value: Any) -> None:
    try:
        scanner.scan(value)
    except Exception as err:
        raise ValueError(
            f"calling scan() on {type(scanner).__name__} with {value!r} failed: {err}"
        ) from err


def _normalise(value: Any) -> Any:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def equal(a: Any, b: Any) -> bool:
    """Compare two primitive values, looking through Valuers.

    Raises TypeError when the primitive types differ.
    """
    if (a is None) != (b is None):
        return False

    if isinstance(a, (bytes, bytearray)) and isinstance(b, (bytes, bytearray)):
        return bytes(a) == bytes(b)

    if isinstance(a, Valuer):
        a = _call_value(a, "a")
    if isinstance(b, Valuer):
        b = _call_value(b, "b")

    if (a is None) != (b is None):
        return False

    a, b = _normalise(a), _normalise(b)
    if type(a) is not type(b):
        raise TypeError(
            f"primitive type of a ({type(a).__name__}) was not the same "
            f"primitive type as b ({type(b).__name__})"
        )

    if isinstance(a, _PRIMITIVES):
        return a == b
    return False


def _convert_like(dst: Any, value: Any) -> Any:
    if value is None:
        if isinstance(dst, datetime.datetime):
            return datetime.datetime.min
        if type(dst) in _SCALARS:
            return type(dst)()
        return None
    if type(dst) in _SCALARS:
        return type(dst)(value)
    return value


def assign(dst: Any, src: Any) -> Any:
    """Assign src to dst and return the result.

    A Scanner dst is filled in place and returned; otherwise the value taken
    from the Valuer src is returned, converted to the type of dst.
    """
    if isinstance(dst, (bytes, bytearray)) and isinstance(src, (bytes, bytearray)):
        return bytes(src)

    is_scanner = isinstance(dst, Scanner)
    is_valuer = isinstance(src, Valuer)

    if is_scanner:
        _call_scan(dst, _call_value(src, "src") if is_valuer else src)
        return dst

    if is_valuer:
        return _convert_like(dst, _call_value(src, "src"))

    raise TypeError("this case should have been handled by something other than this method")


def must_time(valuer: Valuer) -> datetime.datetime:
    """Return the time held by a Valuer, or datetime.min when it is null."""
    value = _call_value(valuer, "valuer")
    if value is None:
        return datetime.datetime.min
    if not isinstance(value, datetime.datetime):
        raise TypeError(f"expected a datetime from {type(valuer).__name__}, got {value!r}")
    return value


def is_valuer_nil(valuer: Valuer) -> bool:
    """Whether the valuer's value is null."""
    return _call_value(valuer, "valuer") is None


def is_nil(value: Any) -> bool:
    """Whether a value is None or a Valuer whose value is null."""
    if value is None:
        return True
    if isinstance(value, Valuer):
        return is_valuer_nil(value)
    return False


def set_scanner(scanner: Scanner, value: Any) -> None:
    """Scan a value into a Scanner, raising ValueError if it refuses it."""
    _call_scan(scanner, value)