"""Tests for the milestone catalog and the progression rule."""

from __future__ import annotations

import pytest

from buildtrack.core.errors import ConstraintViolationError, IllegalProgressionError
from buildtrack.core.milestones import MilestoneCatalog, can_progress
from buildtrack.core.models import Milestone
from buildtrack.core.repositories import MilestoneRepository


@pytest.fixture()
def catalog() -> MilestoneCatalog:
    return MilestoneCatalog(
        [
            Milestone(3, "Release", 20),
            Milestone(1, "Dev", 0),
            Milestone(2, "QA", 10),
            Milestone(4, "Archived", 30, active=False),
        ]
    )


class TestCanProgress:
    @pytest.mark.parametrize(
        ("current", "target", "expected"),
        [(0, 10, True), (10, 10, True), (20, 10, False), (0, 0, True), (-5, 0, True)],
    )
    def test_level_ordering(self, current, target, expected):
        assert can_progress(current, target) is expected

    def test_inactive_target_never_allowed(self):
        assert can_progress(0, 10, target_active=False) is False

    def test_transitive(self):
        levels = [0, 10, 20, 30]
        for a in levels:
            for b in levels:
                for c in levels:
                    if can_progress(a, b) and can_progress(b, c):
                        assert can_progress(a, c)


class TestMilestoneCatalog:
    def test_resolve_folds_non_ascii_case(self):
        catalog = MilestoneCatalog([Milestone(1, "Übergabe", 5), Milestone(2, "Straße", 7)])
        assert catalog.resolve("ÜBERGABE").id == 1
        assert catalog.resolve("strasse").id == 2

    def test_resolve_ignores_case(self, catalog):
        assert catalog.resolve("qa").id == 2
        assert catalog.resolve("  RELEASE ").id == 3

    def test_resolve_unknown_returns_none(self, catalog):
        assert catalog.resolve("Staging") is None

    def test_resolve_includes_inactive(self, catalog):
        assert catalog.resolve("archived").active is False

    def test_active_ordered_by_level(self, catalog):
        assert [m.name for m in catalog.active()] == ["Dev", "QA", "Release"]

    def test_iteration_covers_all(self, catalog):
        assert len(catalog) == 4
        assert [m.name for m in catalog] == ["Dev", "QA", "Release", "Archived"]

    def test_progressions_from(self, catalog):
        qa = catalog.resolve("QA")
        assert [m.name for m in catalog.progressions_from(qa)] == ["QA", "Release"]

    def test_check_transition_allows_same_level(self, catalog):
        qa = catalog.resolve("QA")
        catalog.check_transition(qa, qa)

    def test_check_transition_rejects_downgrade(self, catalog):
        with pytest.raises(IllegalProgressionError) as exc_info:
            catalog.check_transition(catalog.resolve("Release"), catalog.resolve("Dev"))
        assert exc_info.value.code == "ILLEGAL_PROGRESSION"
        assert "below the current level" in exc_info.value.message

    def test_check_transition_rejects_inactive(self, catalog):
        with pytest.raises(IllegalProgressionError, match="inactive"):
            catalog.check_transition(catalog.resolve("Dev"), catalog.resolve("Archived"))


class TestMilestoneRepository:
    def test_load_catalog_reflects_store(self, conn, milestones):
        catalog = MilestoneRepository(conn).load_catalog()
        assert catalog.resolve("release").id == milestones["Release"]

    def test_list_all_filters_inactive(self, conn, milestones):
        repo = MilestoneRepository(conn)
        repo.set_active(milestones["QA"], False)
        conn.commit()
        assert [m.name for m in repo.list_all(include_inactive=False)] == ["Dev", "Release"]
        assert len(repo.list_all()) == 3

    def test_get_by_name_ignores_case(self, conn, milestones):
        assert MilestoneRepository(conn).get_by_name("dEv").id == milestones["Dev"]

    def test_name_unique_across_non_ascii_case(self, conn, milestones):
        repo = MilestoneRepository(conn)
        handover = repo.create("Übergabe", 5)
        conn.commit()

        with pytest.raises(ConstraintViolationError) as exc_info:
            repo.create("übergabe", 50)
        assert exc_info.value.unique is True
        conn.rollback()

        assert repo.get_by_name("ÜBERGABE").id == handover
        assert repo.load_catalog().resolve(" übergabe ").level == 5
        assert [m.name for m in repo.list_all()] == ["Dev", "Übergabe", "QA", "Release"]

    def test_foreign_key_violation_is_not_unique(self, conn, milestones):
        with pytest.raises(ConstraintViolationError) as exc_info:
            conn.execute(
                "INSERT INTO build_records (component_id, build_number, milestone_id) VALUES (?, ?, ?)",
                ("core-lib", "1", 404),
            )
        assert exc_info.value.unique is False
        conn.rollback()
