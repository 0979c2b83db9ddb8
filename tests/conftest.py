"""
Shared pytest fixtures for buildtrack tests.

- ``conn``: in-memory SQLite connection with the full schema applied
- ``milestones``: Dev (0), QA (10), Release (20), name → id
- ``make_build`` / ``make_bom``: factories for build records and BOMs
"""

from __future__ import annotations

import itertools

import pytest

from buildtrack.core.repositories import BomRepository, BuildRepository, MilestoneRepository
from buildtrack.core.schema_loader import apply_all_schemas
from buildtrack.ops.sqlite_conn import SqliteConnection


def open_database(*, foreign_keys: bool = True) -> SqliteConnection:
    conn = SqliteConnection(":memory:", foreign_keys=foreign_keys)
    apply_all_schemas(conn)
    return conn


@pytest.fixture()
def conn():
    conn = open_database()
    yield conn
    conn.close()


@pytest.fixture()
def milestones(conn) -> dict[str, int]:
    repo = MilestoneRepository(conn)
    ids = {name: repo.create(name, level) for name, level in (("Dev", 0), ("QA", 10), ("Release", 20))}
    conn.commit()
    return ids


@pytest.fixture()
def make_build(conn, milestones):
    repo = BuildRepository(conn)
    numbers = itertools.count(1)

    def _make(component_id: str = "core-lib", milestone: str = "Dev", *, branch: str = "main") -> int:
        build_id = repo.create(
            component_id=component_id,
            build_number=str(next(numbers)),
            branch=branch,
            milestone_id=milestones[milestone],
        )
        conn.commit()
        return build_id

    return _make


@pytest.fixture()
def make_bom(conn):
    repo = BomRepository(conn)

    def _make(build_id: int, *, external_reference_id: str | None = None) -> int:
        bom_id = repo.create(
            build_record_id=build_id,
            bom_type="default",
            external_reference_id=external_reference_id,
        )
        conn.commit()
        return bom_id

    return _make
