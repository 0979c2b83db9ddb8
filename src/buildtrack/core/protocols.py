"""
Structural protocols for buildtrack.

Repositories, the state machine and the provenance assembler depend on
the shape of a connection, not on a driver.  Production and tests use
:class:`buildtrack.ops.sqlite_conn.SqliteConnection`; unit tests may pass
a ``MagicMock``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """Synchronous connection with one implicit cursor.

    ``execute`` returns that cursor; repositories read ``lastrowid`` after
    an INSERT and ``rowcount`` after a guarded UPDATE.
    """

    def execute(self, sql: str, params: tuple = ()) -> Any: ...

    def fetchone(self) -> Any: ...

    def fetchall(self) -> list: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


__all__ = ["Connection"]
