"""SQL fragments that differ between database engines.

Repositories never spell placeholders or boolean literals themselves;
they ask their :class:`Dialect`.  SQLite is the only engine shipped.

Case-insensitive name matching is not a dialect concern: engines fold
case differently (SQLite ``NOCASE`` only folds ASCII), so names are
compared through a stored ``name_key`` column computed in Python.

    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.flag(True)
    '1'
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """Engine-specific SQL used by :class:`~buildtrack.core.repository.BaseRepository`."""

    def placeholders(self, count: int) -> str:
        """*count* comma-separated bind markers."""
        ...

    def flag(self, value: bool) -> str:
        """Literal for a stored boolean."""
        ...


class SQLiteDialect:
    """``?`` markers and 0/1 flags."""

    def placeholders(self, count: int) -> str:
        return ", ".join(["?"] * count)

    def flag(self, value: bool) -> str:
        return "1" if value else "0"


__all__ = ["Dialect", "SQLiteDialect"]
