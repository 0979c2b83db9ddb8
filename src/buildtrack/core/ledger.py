"""
Milestone history ledger.

Append-only audit trail of every milestone transition applied to a build.
The ledger never updates or removes an event and has no notion of a
"current" milestone; that lives only on the build record.

Examples:
    >>> ledger = MilestoneLedger(conn)
    >>> ledger.record_transition(7, 1, 2, actor="alice", comment="promoted")
    >>> [(e.previous_milestone_id, e.new_milestone_id) for e in ledger.history(7)]
    [(1, 2)]
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime

from buildtrack.core.models import MilestoneTransitionEvent
from buildtrack.core.protocols import Connection
from buildtrack.core.repositories.history import MilestoneHistoryRepository


class TransitionHistory:
    """Lazy, restartable view over one build's events, oldest first.

    Nothing is read until iteration starts, and every new iteration reads
    the store again, so events appended in between are included.
    """

    def __init__(self, repo: MilestoneHistoryRepository, build_id: int) -> None:
        self._repo = repo
        self.build_id = build_id

    def __iter__(self) -> Iterator[MilestoneTransitionEvent]:
        rows = self._repo.list_for_build(self.build_id)
        for row in rows:
            yield MilestoneTransitionEvent.from_row(row)

    def __len__(self) -> int:
        return self._repo.count_for_build(self.build_id)

    def __repr__(self) -> str:
        return f"TransitionHistory(build_id={self.build_id})"


class MilestoneLedger:
    """Records and replays milestone transitions.

    :meth:`record_transition` does not commit; the caller decides the
    transaction boundary so the event and the build update land together.
    """

    def __init__(self, conn: Connection) -> None:
        self._repo = MilestoneHistoryRepository(conn)

    def record_transition(
        self,
        build_id: int,
        from_milestone_id: int,
        to_milestone_id: int,
        *,
        actor: str,
        comment: str = "",
        timestamp: datetime | None = None,
    ) -> int:
        """Append one event and return its id."""
        recorded_at = timestamp or datetime.now(UTC)
        return self._repo.append(
            build_record_id=build_id,
            previous_milestone_id=from_milestone_id,
            new_milestone_id=to_milestone_id,
            actor=actor,
            comment=comment,
            recorded_at=recorded_at.isoformat(),
        )

    def history(self, build_id: int) -> TransitionHistory:
        return TransitionHistory(self._repo, build_id)


__all__ = ["MilestoneLedger", "TransitionHistory"]
