"""Base class for buildtrack repositories.

A repository owns the SQL for one aggregate.  :class:`BaseRepository`
gives it a connection, a :class:`~buildtrack.core.dialect.Dialect`, a few
row helpers, and the unit-of-work boundary every write goes through::

    ┌────────────────────────────────────────────────────────────────────┐
    │  BaseRepository(conn, dialect=SQLiteDialect())                     │
    │                                                                    │
    │   query(sql, params)       → list[dict]   (column name → value)    │
    │   query_one(sql, params)   → dict | None                           │
    │   insert(table, data)      → AUTOINCREMENT id of the new row       │
    │   update(sql, params)      → rows touched (0 = guard not met)      │
    │   transaction()            → commit on success, roll back on error │
    └────────────────────────────────────────────────────────────────────┘

Rows come back as plain dicts so ``from_row`` constructors can use
``row.get`` for optional columns.  A repository never commits on its own;
callers group related writes in one ``transaction()`` block.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from buildtrack.core.dialect import Dialect, SQLiteDialect
from buildtrack.core.protocols import Connection


def _as_dict(row: Any, columns: list[str]) -> dict[str, Any]:
    if isinstance(row, Mapping):
        return dict(row)
    if hasattr(row, "keys"):
        return {key: row[key] for key in row.keys()}
    return dict(zip(columns, row, strict=False))


class BaseRepository:
    """Connection + dialect pair shared by every repository.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        dialect: SQL dialect.  Defaults to :class:`SQLiteDialect`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect: Dialect = dialect or SQLiteDialect()

    def ph(self, count: int) -> str:
        """Bind markers for *count* values."""
        return self.dialect.placeholders(count)

    # -- Reads -------------------------------------------------------------

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        columns = [d[0] for d in (getattr(cursor, "description", None) or ())]
        return [_as_dict(row, columns) for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        rows = self.query(sql, params)
        return rows[0] if rows else None

    # -- Writes ------------------------------------------------------------

    def insert(self, table: str, data: dict[str, Any]) -> int:
        """Insert one row and return its id."""
        sql = f"INSERT INTO {table} ({', '.join(data)}) VALUES ({self.ph(len(data))})"
        return self.conn.execute(sql, tuple(data.values())).lastrowid

    def update(self, sql: str, params: tuple = ()) -> int:
        """Run an UPDATE and return the number of rows it matched."""
        return self.conn.execute(sql, params).rowcount

    @contextmanager
    def transaction(self) -> Iterator[BaseRepository]:
        """Commit the enclosed writes together, or roll all of them back."""
        try:
            yield self
        except BaseException:
            self.conn.rollback()
            raise
        self.conn.commit()


__all__ = ["BaseRepository"]
