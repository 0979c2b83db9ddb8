"""Tests for quality gate versioning."""

from __future__ import annotations

import pytest

from buildtrack.core.errors import (
    ConstraintViolationError,
    DuplicateActiveGateError,
    QualityGateNotFoundError,
)
from buildtrack.core.models import QualityGate
from buildtrack.core.quality_gates import GateFields, QualityGateVersioning, latest_per_name
from buildtrack.core.repositories import QualityGateRepository


@pytest.fixture()
def gates(conn) -> QualityGateVersioning:
    return QualityGateVersioning(conn)


class TestQualityGateVersioning:
    def test_create_then_update_twice(self, conn, gates):
        first = gates.create("CodeCov", GateFields(pass_threshold=70))
        second = gates.update("CodeCov", GateFields(pass_threshold=75))
        third = gates.update("codecov", GateFields(pass_threshold=80))

        active = gates.list_active()
        assert [(g.id, g.pass_threshold) for g in active] == [(third, 80)]
        versions = gates.versions("CodeCov")
        assert [g.id for g in versions] == [third, second, first]
        assert [g.active for g in versions] == [True, False, False]

    def test_exactly_one_active_row(self, conn, gates):
        gates.create("Lint", GateFields())
        for _ in range(3):
            gates.update("Lint", GateFields(max_value=5))
        rows = QualityGateRepository(conn).list_active_rows()
        assert len(rows) == 1

    def test_create_duplicate_active(self, gates):
        gates.create("CodeCov", GateFields())
        with pytest.raises(DuplicateActiveGateError):
            gates.create("CODECOV", GateFields())

    def test_update_unknown(self, gates):
        with pytest.raises(QualityGateNotFoundError):
            gates.update("Nope", GateFields())

    def test_list_sorted_by_name(self, gates):
        gates.create("Lint", GateFields())
        gates.create("CodeCov", GateFields())
        assert [g.name for g in gates.list_active()] == ["CodeCov", "Lint"]

    def test_update_rolls_back_on_insert_failure(self, conn, gates, monkeypatch):
        gates.create("CodeCov", GateFields(pass_threshold=70))

        def boom(*args, **kwargs):
            raise RuntimeError("insert failed")

        monkeypatch.setattr(QualityGateRepository, "insert_version", boom)
        with pytest.raises(RuntimeError):
            gates.update("CodeCov", GateFields(pass_threshold=90))
        monkeypatch.undo()

        active = gates.list_active()
        assert [g.pass_threshold for g in active] == [70]


class TestLatestPerName:
    def test_highest_id_wins_case_insensitive(self):
        rows = [
            QualityGate(1, "CodeCov", "threshold", True),
            QualityGate(5, "codecov", "threshold", True),
            QualityGate(3, "Lint", "threshold", True),
        ]
        assert [g.id for g in latest_per_name(rows)] == [5, 3]

    def test_empty(self):
        assert latest_per_name([]) == []


class TestNonAsciiNames:
    def test_create_rejects_other_case_of_active_name(self, gates):
        gates.create("Überdeckung", GateFields())
        with pytest.raises(DuplicateActiveGateError):
            gates.create("überdeckung", GateFields())

    def test_update_supersedes_every_case_variant(self, conn, gates):
        first = gates.create("Überdeckung", GateFields(pass_threshold=70))
        second = gates.update("ÜBERDECKUNG", GateFields(pass_threshold=75))

        assert [(g.id, g.name) for g in gates.list_active()] == [(second, "ÜBERDECKUNG")]
        assert [g.id for g in gates.versions("überdeckung")] == [second, first]
        assert len(QualityGateRepository(conn).list_active_rows()) == 1

    def test_store_rejects_second_active_row(self, conn):
        repo = QualityGateRepository(conn)
        repo.insert_version("Überdeckung", {})
        with pytest.raises(ConstraintViolationError) as exc_info:
            repo.insert_version("überdeckung", {})
        assert exc_info.value.unique is True
        conn.rollback()

    def test_latest_per_name_folds_non_ascii(self):
        rows = [
            QualityGate(1, "Überdeckung", "threshold", True),
            QualityGate(2, "überdeckung", "threshold", True),
        ]
        assert [g.id for g in latest_per_name(rows)] == [2]


class TestConcurrentCreate:
    def test_unique_index_reports_duplicate_gate(self, conn, gates, monkeypatch):
        gates.create("CodeCov", GateFields())
        monkeypatch.setattr(QualityGateRepository, "has_active", lambda self, name: False)

        with pytest.raises(DuplicateActiveGateError) as exc_info:
            gates.create("codecov", GateFields())
        assert isinstance(exc_info.value.cause, ConstraintViolationError)
        monkeypatch.undo()

        assert len(gates.list_active()) == 1
