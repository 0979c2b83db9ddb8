"""Schema installation.

The DDL lives in ``core/schema/NN_<area>.sql``, one file per aggregate,
applied in filename order so referenced tables exist first::

    00_milestones.sql      build_milestones
    01_builds.sql          build_records, build_milestone_history, build_steps
    02_bom.sql             boms, internal_dependencies, external_dependencies
    03_quality_gates.sql   quality_gates

Every statement is ``CREATE ... IF NOT EXISTS``, so applying the schema to
an initialised database changes nothing.
"""

from __future__ import annotations

import re
import sqlite3
from pathlib import Path

from buildtrack.core.logging import get_logger
from buildtrack.core.protocols import Connection

logger = get_logger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent / "schema"

_CREATE_TABLE = re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(\w+)", re.IGNORECASE)


def _split_sql(script: str) -> list[str]:
    """Split *script* into complete statements, dropping comment-only lines."""
    statements: list[str] = []
    buffer = ""
    for line in script.splitlines():
        if not line.strip() or line.lstrip().startswith("--"):
            continue
        buffer += line + "\n"
        if sqlite3.complete_statement(buffer):
            statements.append(buffer.strip())
            buffer = ""
    if buffer.strip():
        statements.append(buffer.strip())
    return statements


def _schema_files() -> list[Path]:
    return sorted(SCHEMA_DIR.glob("*.sql"))


def table_names_from_ddl() -> list[str]:
    """Tables the schema files create, in creation order."""
    return [
        match.group(1)
        for path in _schema_files()
        for match in _CREATE_TABLE.finditer(path.read_text(encoding="utf-8"))
    ]


def apply_all_schemas(conn: Connection) -> list[str]:
    """Run every schema file against *conn* and commit; returns the file names applied."""
    applied: list[str] = []
    for path in _schema_files():
        for statement in _split_sql(path.read_text(encoding="utf-8")):
            conn.execute(statement)
        applied.append(path.name)
    conn.commit()
    logger.debug("schema.applied", files=applied)
    return applied


__all__ = ["apply_all_schemas", "table_names_from_ddl"]
