"""Deterministic "random" values for test data, driven by a counter."""

from __future__ import annotations

import datetime
import hashlib
import random
import re
import uuid
from typing import Callable

NextInt = Callable[[], int]

_ALPHABET_ALL = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_ALPHABET_LOWER = "abcdefghijklmnopqrstuvwxyz"
_ENUM = re.compile(r"enum(?:\.\w+)?\(([^)]+)\)")

_MASK64 = (1 << 64) - 1


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= 1 << 31 else value


def _trunc_mod(a: int, b: int) -> int:
    """Remainder that keeps the sign of the dividend."""
    r = abs(a) % abs(b)
    return -r if a < 0 else r


def _parse_enum_values(enum: str) -> list[str]:
    match = _ENUM.fullmatch(enum)
    if match is None:
        return []
    inner = match.group(1)
    if len(inner) < 2 or inner[0] != "'" or inner[-1] != "'":
        return []
    return inner[1:-1].split("','")


def text(next_int: NextInt, length: int) -> str:
    """A string of letters and digits chosen by next_int."""
    return "".join(_ALPHABET_ALL[next_int() % len(_ALPHABET_ALL)] for _ in range(length))


def enum_value(next_int: NextInt, enum: str) -> str:
    """Pick one of the values of an enum type definition such as enum('a','b')."""
    values = _parse_enum_values(enum)
    if not values:
        raise ValueError(f"unable to parse enum string: {enum}")
    return values[next_int() % len(values)]


def _net_addr(next_int: NextInt) -> str:
    return ".".join(str(next_int() % 254 + 1) for _ in range(4))


def _mac_addr(next_int: NextInt) -> str:
    octets = [next_int() & 0xFF for _ in range(6)]
    octets[0] |= 2  # locally administered
    return ":".join(f"{octet:02x}" for octet in octets)


def _lsn(next_int: NextInt) -> str:
    a = next_int() % 9000000
    b = next_int() % 9000000
    return f"{a}/{b}"


def _txid(next_int: NextInt) -> str:
    a = next_int() % 200 + 100
    return f"{a}:{a + 100}:{a},{a + 50}"


def _money(next_int: NextInt) -> str:
    return f"{next_int() % 100000}.00"


def _time(next_int: NextInt) -> str:
    hours = next_int() % 24
    minutes = next_int() % 60
    seconds = next_int() % 60
    return f"{hours}:{minutes}:{seconds}"


_FORMATTERS: dict[str, Callable[[NextInt], str]] = {
    "json": lambda n: f'"{text(n, 1)}"',
    "jsonb": lambda n: f'"{text(n, 1)}"',
    "interval": lambda n: f"{n() % 26 + 2} days",
    "uuid": lambda n: str(uuid.uuid4()),
    "cidr": _net_addr,
    "inet": _net_addr,
    "macaddr": _mac_addr,
    "pg_lsn": _lsn,
    "txid_snapshot": _txid,
    "money": _money,
    "time": _time,
}


def formatted_string(next_int: NextInt, field_type: str) -> str | None:
    """A value for column types with a special string format, else None."""
    if field_type.startswith("enum"):
        return enum_value(next_int, field_type)
    formatter = _FORMATTERS.get(field_type)
    return formatter(next_int) if formatter else None


def medium_int(next_int: NextInt, field_type: str) -> int | None:
    """A value in the range of a MySQL mediumint, or None for other types."""
    if field_type != "mediumint":
        return None
    return _trunc_mod(_to_int32(next_int()), 8388607)


def medium_uint(next_int: NextInt, field_type: str) -> int | None:
    """A value in the range of an unsigned MySQL mediumint, or None."""
    if field_type != "mediumint":
        return None
    return (next_int() & 0xFFFFFFFF) % 16777215


def date(next_int: NextInt) -> datetime.datetime:
    """A UTC date between 1972 and 2031 with no time of day."""
    year = 1972 + next_int() % 60
    month = 1 + next_int() % 12
    day = 1 + next_int() % 25
    return datetime.datetime(year, month, day, tzinfo=datetime.timezone.utc)


def byte_slice(next_int: NextInt, length: int) -> bytes:
    """Bytes chosen by next_int, non-printables included."""
    return bytes(next_int() % 256 for _ in range(length))


def _stable_seed(name: str) -> int:
    seed = 0
    for i, byte in enumerate(hashlib.md5(name.encode()).digest()):
        seed ^= (byte << ((i * 4) % 64)) & _MASK64
    return seed


def stable_db_name(name: str) -> str:
    """A 40 letter lower case name that is always the same for the same input."""
    rng = random.Random(_stable_seed(name))
    return "".join(rng.choice(_ALPHABET_LOWER) for _ in range(40))