"""Tests for MilestoneStateMachine: validation, atomic write, history, notification."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from buildtrack.core.errors import (
    BuildNotFoundError,
    ConcurrentTransitionError,
    IllegalProgressionError,
    StoreFailureError,
    UnknownMilestoneError,
)
from buildtrack.core.ledger import MilestoneLedger
from buildtrack.core.notifier import NotificationError
from buildtrack.core.repositories import BuildRepository, MilestoneRepository
from buildtrack.core.transitions import MilestoneStateMachine

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class RecordingNotifier:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str, str]] = []
        self.error = error

    def notify_milestone_change(self, external_reference_id, milestone_name, comment):
        self.calls.append((external_reference_id, milestone_name, comment))
        if self.error:
            raise self.error


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def machine(conn, milestones, notifier) -> MilestoneStateMachine:
    return MilestoneStateMachine(conn, notifier=notifier, clock=lambda: FIXED_NOW)


def _history(conn, build_id):
    return list(MilestoneLedger(conn).history(build_id))


class TestApply:
    def test_upgrade_records_exactly_one_event(self, conn, machine, make_build, milestones):
        build_id = make_build(milestone="Dev")

        outcome = machine.apply(build_id, "QA", actor="alice", comment="smoke green")

        assert outcome.previous.name == "Dev"
        assert outcome.current.name == "QA"
        assert outcome.recorded_at == FIXED_NOW
        assert BuildRepository(conn).get(build_id).milestone_id == milestones["QA"]
        events = _history(conn, build_id)
        assert len(events) == 1
        assert events[0].id == outcome.event_id
        assert events[0].previous_milestone_id == milestones["Dev"]
        assert events[0].new_milestone_id == milestones["QA"]
        assert events[0].actor == "alice"
        assert events[0].comment == "smoke green"
        assert events[0].recorded_at == FIXED_NOW

    def test_name_is_case_insensitive(self, machine, make_build):
        build_id = make_build()
        assert machine.apply(build_id, "release", actor="bob").current.name == "Release"

    def test_same_milestone_succeeds_and_is_recorded(self, conn, machine, make_build):
        build_id = make_build(milestone="QA")

        machine.apply(build_id, "QA", actor="alice")
        machine.apply(build_id, "QA", actor="alice")

        assert len(_history(conn, build_id)) == 2

    def test_bumps_version(self, conn, machine, make_build):
        build_id = make_build()
        machine.apply(build_id, "QA", actor="alice")
        assert BuildRepository(conn).get(build_id).version == 1

    def test_downgrade_rejected_without_side_effects(self, conn, machine, make_build, milestones):
        build_id = make_build(milestone="Release")

        with pytest.raises(IllegalProgressionError):
            machine.apply(build_id, "Dev", actor="alice")

        build = BuildRepository(conn).get(build_id)
        assert build.milestone_id == milestones["Release"]
        assert build.version == 0
        assert _history(conn, build_id) == []

    def test_inactive_target_rejected(self, conn, machine, make_build, milestones):
        MilestoneRepository(conn).set_active(milestones["Release"], False)
        conn.commit()
        build_id = make_build()

        with pytest.raises(IllegalProgressionError, match="inactive"):
            machine.apply(build_id, "Release", actor="alice")

    def test_unknown_milestone(self, conn, machine, make_build):
        build_id = make_build()
        with pytest.raises(UnknownMilestoneError):
            machine.apply(build_id, "Staging", actor="alice")
        assert _history(conn, build_id) == []

    def test_unknown_build(self, machine):
        with pytest.raises(BuildNotFoundError):
            machine.apply(999, "QA", actor="alice")

    def test_dev_qa_release_then_downgrade(self, conn, machine, make_build):
        build_id = make_build(milestone="Dev")

        machine.apply(build_id, "QA", actor="alice")
        machine.apply(build_id, "Release", actor="bob")
        with pytest.raises(IllegalProgressionError):
            machine.apply(build_id, "Dev", actor="mallory")

        assert machine.current_milestone(build_id).name == "Release"
        assert [e.actor for e in _history(conn, build_id)] == ["alice", "bob"]


class TestConcurrencyAndStoreFailures:
    def test_stale_version_raises_conflict(self, conn, machine, make_build, milestones):
        build_id = make_build()

        with patch.object(BuildRepository, "advance_milestone", return_value=False):
            with pytest.raises(ConcurrentTransitionError) as exc_info:
                machine.apply(build_id, "QA", actor="alice")

        assert exc_info.value.code == "CONFLICT"
        assert _history(conn, build_id) == []
        assert BuildRepository(conn).get(build_id).milestone_id == milestones["Dev"]

    def test_guard_rejects_changed_row(self, conn, make_build, milestones):
        build_id = make_build()
        repo = BuildRepository(conn)
        assert repo.advance_milestone(
            build_id, expected_milestone_id=milestones["Dev"], expected_version=0,
            new_milestone_id=milestones["QA"],
        )
        assert not repo.advance_milestone(
            build_id, expected_milestone_id=milestones["Dev"], expected_version=0,
            new_milestone_id=milestones["Release"],
        )

    def test_history_write_failure_rolls_back_build_update(self, conn, machine, make_build, milestones):
        build_id = make_build()

        with patch.object(
            MilestoneLedger, "record_transition", side_effect=sqlite3.OperationalError("disk I/O error")
        ):
            with pytest.raises(StoreFailureError):
                machine.apply(build_id, "QA", actor="alice")

        build = BuildRepository(conn).get(build_id)
        assert build.milestone_id == milestones["Dev"]
        assert build.version == 0
        assert _history(conn, build_id) == []


class TestNotification:
    def test_notifies_with_external_reference(self, machine, make_build, make_bom, notifier):
        build_id = make_build()
        make_bom(build_id, external_reference_id="CM-42")

        outcome = machine.apply(build_id, "QA", actor="alice", comment="go")

        assert outcome.notified is True
        assert notifier.calls == [("CM-42", "QA", "go")]

    def test_skipped_without_bom(self, machine, make_build, notifier):
        outcome = machine.apply(make_build(), "QA", actor="alice")
        assert outcome.notified is False
        assert notifier.calls == []

    def test_skipped_without_reference(self, machine, make_build, make_bom, notifier):
        build_id = make_build()
        make_bom(build_id)
        assert machine.apply(build_id, "QA", actor="alice").notified is False
        assert notifier.calls == []

    def test_failure_does_not_undo_transition(self, conn, milestones, make_build, make_bom):
        failing = RecordingNotifier(error=NotificationError("Webhook returned HTTP 503"))
        machine = MilestoneStateMachine(conn, notifier=failing)
        build_id = make_build()
        make_bom(build_id, external_reference_id="CM-7")

        outcome = machine.apply(build_id, "QA", actor="alice")

        assert outcome.notified is False
        assert len(failing.calls) == 1
        assert BuildRepository(conn).get(build_id).milestone_id == milestones["QA"]
        assert len(_history(conn, build_id)) == 1


class TestReads:
    def test_current_milestone_missing_build(self, machine):
        assert machine.current_milestone(42) is None

    def test_available_progressions(self, machine, make_build):
        build_id = make_build(milestone="QA")
        assert [m.name for m in machine.available_progressions(build_id)] == ["QA", "Release"]

    def test_available_progressions_missing_build(self, machine):
        with pytest.raises(BuildNotFoundError):
            machine.available_progressions(42)
