"""Composable SQL query building, eager loading, value helpers and deterministic test values."""

__version__ = "0.1.0"

__all__ = [
    "builders",
    "eager_load",
    "qm",
    "qmhelper",
    "query",
    "randomvalues",
    "values",
]