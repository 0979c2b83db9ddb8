"""Tests for BaseRepository and the schema loader."""

from __future__ import annotations

import pytest

from buildtrack.core.repository import BaseRepository
from buildtrack.core.schema_loader import _split_sql, apply_all_schemas, table_names_from_ddl


class TestBaseRepository:
    def test_transaction_commits(self, conn):
        repo = BaseRepository(conn)
        with repo.transaction():
            repo.insert("build_milestones", {"name": "Dev", "name_key": "dev", "level": 0})
        assert repo.query_one("SELECT name FROM build_milestones")["name"] == "Dev"

    def test_transaction_rolls_back(self, conn):
        repo = BaseRepository(conn)
        with pytest.raises(RuntimeError):
            with repo.transaction():
                repo.insert("build_milestones", {"name": "Dev", "name_key": "dev", "level": 0})
                raise RuntimeError("abort")
        assert repo.query("SELECT * FROM build_milestones") == []

    def test_update_returns_rowcount(self, conn, milestones):
        repo = BaseRepository(conn)
        assert repo.update("UPDATE build_milestones SET active = 0 WHERE level >= ?", (10,)) == 2


class TestSchemaLoader:
    def test_tables(self):
        names = table_names_from_ddl()
        for table in (
            "build_milestones",
            "build_records",
            "build_milestone_history",
            "build_steps",
            "boms",
            "internal_dependencies",
            "external_dependencies",
            "quality_gates",
        ):
            assert table in names

    def test_idempotent(self, conn):
        apply_all_schemas(conn)

    def test_split_ignores_comments(self):
        sql = "-- header\nCREATE TABLE a (x INTEGER);\n\n-- trailer\nCREATE TABLE b (y TEXT);\n"
        assert len(_split_sql(sql)) == 2
