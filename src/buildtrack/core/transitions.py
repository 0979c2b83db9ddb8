"""
Build milestone state machine.

Composes the catalog, the validator, the build record and the ledger into
one transition protocol:

    ┌────────────────────────────────────────────────────────────────┐
    │ apply(build_id, target_name, actor, comment)                   │
    │                                                                │
    │ 1. resolve target name (case-insensitive) → UnknownMilestone   │
    │ 2. read build + current milestone         → BuildNotFound      │
    │ 3. validate level / active                → IllegalProgression │
    │ 4. one transaction:                                            │
    │      guarded UPDATE build_records ... WHERE milestone+version  │
    │      INSERT build_milestone_history                            │
    │    zero rows updated                      → ConcurrentTransition│
    │ 5. notify external system (best-effort, never raises)          │
    └────────────────────────────────────────────────────────────────┘

Re-requesting the milestone a build is already at succeeds and still
appends an event.  Every call is audited, none is deduplicated.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from buildtrack.core.errors import (
    BuildNotFoundError,
    BuildTrackError,
    ConcurrentTransitionError,
    StoreFailureError,
    UnknownMilestoneError,
)
from buildtrack.core.ledger import MilestoneLedger
from buildtrack.core.logging import get_logger
from buildtrack.core.milestones import MilestoneCatalog
from buildtrack.core.models import BuildRecord, Milestone
from buildtrack.core.notifier import MilestoneNotifier, NullNotifier
from buildtrack.core.protocols import Connection
from buildtrack.core.repositories import BomRepository, BuildRepository, MilestoneRepository

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TransitionOutcome:
    """What a successful transition did."""

    build_id: int
    previous: Milestone
    current: Milestone
    event_id: int
    recorded_at: datetime
    notified: bool


class MilestoneStateMachine:
    """Applies milestone transitions to build records.

    Parameters:
        conn: Connection used for every read and write of the request.
        notifier: Receives successful transitions.  Defaults to
            :class:`NullNotifier`.
        clock: Source of the server-assigned event timestamp.
    """

    def __init__(
        self,
        conn: Connection,
        *,
        notifier: MilestoneNotifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._milestones = MilestoneRepository(conn)
        self._builds = BuildRepository(conn)
        self._boms = BomRepository(conn)
        self._ledger = MilestoneLedger(conn)
        self._notifier = notifier or NullNotifier()
        self._clock = clock or (lambda: datetime.now(UTC))

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def current_milestone(self, build_id: int) -> Milestone | None:
        """The build's current milestone, or ``None`` when the build does not exist."""
        build = self._builds.get(build_id)
        if build is None:
            return None
        return self._milestones.get_by_id(build.milestone_id)

    def available_progressions(self, build_id: int) -> list[Milestone]:
        """Active milestones at a level at or above the build's current one."""
        catalog = self._milestones.load_catalog()
        _, current = self._load_build(build_id, catalog)
        return catalog.progressions_from(current)

    # ------------------------------------------------------------------ #
    # Transition
    # ------------------------------------------------------------------ #

    def apply(
        self,
        build_id: int,
        target_name: str,
        *,
        actor: str,
        comment: str = "",
    ) -> TransitionOutcome:
        """Move *build_id* to the milestone named *target_name*.

        Raises:
            UnknownMilestoneError: *target_name* matches no milestone.
            BuildNotFoundError: no build record with *build_id*.
            IllegalProgressionError: target is below the current level or inactive.
            ConcurrentTransitionError: the build changed after it was read.
            StoreFailureError: the store failed; nothing was applied.
        """
        catalog = self._milestones.load_catalog()

        target = catalog.resolve(target_name)
        if target is None:
            raise UnknownMilestoneError(target_name)

        build, current = self._load_build(build_id, catalog)
        catalog.check_transition(current, target)

        recorded_at = self._clock()
        event_id = self._write(build, current, target, actor, comment, recorded_at)

        logger.info(
            "milestone.transition_applied",
            build_id=build_id,
            previous=current.name,
            milestone=target.name,
            actor=actor,
            event_id=event_id,
        )

        notified = self._notify(build_id, target, comment)
        return TransitionOutcome(
            build_id=build_id,
            previous=current,
            current=target,
            event_id=event_id,
            recorded_at=recorded_at,
            notified=notified,
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _load_build(
        self, build_id: int, catalog: MilestoneCatalog
    ) -> tuple[BuildRecord, Milestone]:
        build = self._builds.get(build_id)
        if build is None:
            raise BuildNotFoundError(build_id)
        current = catalog.get(build.milestone_id)
        if current is None:
            raise StoreFailureError(
                f"Build {build_id} references unknown milestone id {build.milestone_id}"
            ).with_context(build_id=build_id)
        return build, current

    def _write(
        self,
        build: BuildRecord,
        current: Milestone,
        target: Milestone,
        actor: str,
        comment: str,
        recorded_at: datetime,
    ) -> int:
        try:
            with self._builds.transaction():
                advanced = self._builds.advance_milestone(
                    build.id,
                    expected_milestone_id=current.id,
                    expected_version=build.version,
                    new_milestone_id=target.id,
                )
                if not advanced:
                    raise ConcurrentTransitionError(build.id)
                return self._ledger.record_transition(
                    build.id,
                    current.id,
                    target.id,
                    actor=actor,
                    comment=comment,
                    timestamp=recorded_at,
                )
        except BuildTrackError:
            raise
        except Exception as exc:
            raise StoreFailureError(
                f"Failed to record milestone transition for build {build.id}",
                cause=exc,
            ).with_context(build_id=build.id, milestone=target.name) from exc

    def _notify(self, build_id: int, target: Milestone, comment: str) -> bool:
        try:
            reference = self._boms.external_reference_for_build(build_id)
        except Exception as exc:
            logger.warning("milestone.notification_failed", build_id=build_id, error=str(exc))
            return False

        if not reference:
            logger.info(
                "milestone.notification_skipped",
                build_id=build_id,
                reason="no external reference on BOM",
            )
            return False

        try:
            self._notifier.notify_milestone_change(reference, target.name, comment)
        except Exception as exc:
            logger.warning(
                "milestone.notification_failed",
                build_id=build_id,
                external_reference_id=reference,
                milestone=target.name,
                error=str(exc),
            )
            return False
        return True


__all__ = ["MilestoneStateMachine", "TransitionOutcome"]
