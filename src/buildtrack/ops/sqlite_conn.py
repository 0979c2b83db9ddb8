"""SQLite implementation of :class:`~buildtrack.core.protocols.Connection`.

Every connection enforces foreign keys, returns rows addressable by
column name, and waits up to ``timeout`` seconds for a competing writer
instead of failing at once.  The API opens one per request, so the file
may be shared by several connections at a time.

    with SqliteConnection("builds.db") as conn:
        conn.execute("SELECT COUNT(*) FROM build_records")
        (count,) = conn.fetchone()
"""

from __future__ import annotations

import sqlite3
from typing import Any

from buildtrack.core.errors import ConstraintViolationError

_UNIQUE_PREFIX = "UNIQUE constraint failed"


class SqliteConnection:
    """One ``sqlite3`` connection and the cursor all statements share."""

    def __init__(self, path: str = ":memory:", *, foreign_keys: bool = True, timeout: float = 5.0) -> None:
        self.path = path
        self._conn = sqlite3.connect(path, timeout=timeout, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute(f"PRAGMA foreign_keys = {'ON' if foreign_keys else 'OFF'}")
        self._cursor = self._conn.cursor()

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one statement.  Constraint failures surface as :class:`ConstraintViolationError`."""
        try:
            return self._cursor.execute(sql, params)
        except sqlite3.IntegrityError as exc:
            unique = str(exc).startswith(_UNIQUE_PREFIX)
            raise ConstraintViolationError(str(exc), unique=unique, cause=exc) from exc

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SqliteConnection:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SqliteConnection(path={self.path!r})"
