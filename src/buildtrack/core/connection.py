"""
Connection factory.

Callers go through ``create_connection()`` rather than importing a backend
class directly.

================  ============================================  ==================
URL form          Example                                       Result
================  ============================================  ==================
``memory``        ``memory`` / ``sqlite:///:memory:`` / None    in-memory SQLite
``sqlite``        ``sqlite:///path/to/builds.db``               SQLite file
``file``          ``builds.db``                                 SQLite file
================  ============================================  ==================

Usage::

    from buildtrack.core.connection import create_connection

    conn, info = create_connection("sqlite:///builds.db")
    # ConnectionInfo(backend='sqlite', persistent=True, url='builds.db')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from buildtrack.core.errors import ConfigError
from buildtrack.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ConnectionInfo:
    """Metadata about a connection returned by :func:`create_connection`."""

    backend: str
    persistent: bool
    url: str

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"


def _parse_url(db: str | None) -> tuple[str, str]:
    """Classify *db* as ``"memory"``, ``"sqlite"`` or ``"file"`` and extract the path."""
    if not db or db in {"memory", ":memory:"}:
        return "memory", ":memory:"
    if db.startswith("sqlite://"):
        path = db[len("sqlite:///"):] if db.startswith("sqlite:///") else db[len("sqlite://"):]
        if not path or path == ":memory:":
            return "memory", ":memory:"
        return "sqlite", path
    if "://" in db:
        scheme = db.split("://", 1)[0]
        raise ConfigError(f"Unsupported database backend: {scheme!r}").with_context(
            url_scheme=scheme
        )
    return "file", db


def create_connection(db: str | None = None) -> tuple[Any, ConnectionInfo]:
    """Open a connection for *db* and describe it.

    Raises:
        ConfigError: the URL names a backend other than SQLite.
    """
    from buildtrack.ops.sqlite_conn import SqliteConnection

    kind, path = _parse_url(db)
    if kind == "memory":
        return SqliteConnection(":memory:"), ConnectionInfo("sqlite", False, ":memory:")

    parent = Path(path).expanduser().resolve().parent
    parent.mkdir(parents=True, exist_ok=True)
    logger.debug("connection.opened", backend="sqlite", path=path)
    return SqliteConnection(path), ConnectionInfo("sqlite", True, path)


__all__ = ["ConnectionInfo", "create_connection"]
