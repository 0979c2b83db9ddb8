"""
Milestone operations.

Catalog listing and definition, name resolution, and the milestone
transition workflow (apply, history, available progressions).  The
transition logic itself lives in :class:`buildtrack.core.transitions.MilestoneStateMachine`;
these functions adapt it to the request/result contract.
"""

from __future__ import annotations

from buildtrack.core.errors import BuildNotFoundError, DuplicateRecordError, UnknownMilestoneError
from buildtrack.core.ledger import MilestoneLedger
from buildtrack.core.logging import get_logger
from buildtrack.core.models import Milestone, MilestoneTransitionEvent
from buildtrack.core.notifier import NullNotifier
from buildtrack.core.repositories import BuildRepository, MilestoneRepository
from buildtrack.core.transitions import MilestoneStateMachine
from buildtrack.ops.context import OperationContext
from buildtrack.ops.failures import conflict_as, fail_from_exception, invalid
from buildtrack.ops.requests import (
    ApplyTransitionRequest,
    DefineMilestoneRequest,
    ListMilestonesRequest,
)
from buildtrack.ops.responses import HistoryEntry, MilestoneSummary, TransitionResult
from buildtrack.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def _milestone_repo(ctx: OperationContext) -> MilestoneRepository:
    return MilestoneRepository(ctx.conn)


def _state_machine(ctx: OperationContext) -> MilestoneStateMachine:
    return MilestoneStateMachine(ctx.conn, notifier=ctx.notifier or NullNotifier())


# ------------------------------------------------------------------ #
# Catalog
# ------------------------------------------------------------------ #


def list_milestones(
    ctx: OperationContext,
    request: ListMilestonesRequest | None = None,
) -> OperationResult[list[MilestoneSummary]]:
    """List milestones ordered by level (active only unless asked otherwise)."""
    request = request or ListMilestonesRequest()
    timer = start_timer()
    try:
        milestones = _milestone_repo(ctx).list_all(include_inactive=request.include_inactive)
        return OperationResult.ok(
            [_to_summary(m) for m in milestones], elapsed_ms=timer.elapsed_ms
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="list_milestones", elapsed_ms=timer.elapsed_ms)


def define_milestone(
    ctx: OperationContext,
    request: DefineMilestoneRequest,
) -> OperationResult[MilestoneSummary]:
    """Add a milestone to the catalog.  Names are unique regardless of case."""
    timer = start_timer()
    name = request.name.strip()
    if not name:
        return invalid("name is required", field="name", elapsed_ms=timer.elapsed_ms)

    try:
        repo = _milestone_repo(ctx)
        duplicate = DuplicateRecordError(f"Milestone {name!r} already exists").with_context(milestone=name)
        if repo.get_by_name(name) is not None:
            raise duplicate
        if ctx.dry_run:
            return OperationResult.ok(
                MilestoneSummary(name=name, level=request.level, active=request.active),
                elapsed_ms=timer.elapsed_ms,
            )
        with conflict_as(duplicate), repo.transaction():
            milestone_id = repo.create(name, request.level, active=request.active)
        logger.info("milestone.defined", milestone=name, level=request.level)
        return OperationResult.ok(
            MilestoneSummary(id=milestone_id, name=name, level=request.level, active=request.active),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="define_milestone", elapsed_ms=timer.elapsed_ms)


def resolve_milestone(ctx: OperationContext, name: str) -> OperationResult[MilestoneSummary]:
    """Look up a milestone by display name, ignoring case."""
    timer = start_timer()
    try:
        milestone = _milestone_repo(ctx).load_catalog().resolve(name)
        if milestone is None:
            raise UnknownMilestoneError(name)
        return OperationResult.ok(_to_summary(milestone), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="resolve_milestone", elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Build milestone state
# ------------------------------------------------------------------ #


def get_current_milestone(ctx: OperationContext, build_id: int) -> OperationResult[MilestoneSummary]:
    """The milestone a build currently sits at."""
    timer = start_timer()
    try:
        milestone = _state_machine(ctx).current_milestone(build_id)
        if milestone is None:
            raise BuildNotFoundError(build_id)
        return OperationResult.ok(_to_summary(milestone), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(
            exc, operation="get_current_milestone", elapsed_ms=timer.elapsed_ms
        )


def apply_transition(
    ctx: OperationContext,
    request: ApplyTransitionRequest,
) -> OperationResult[TransitionResult]:
    """Move a build to a new milestone.

    Fails with ``UNKNOWN_MILESTONE``, ``BUILD_NOT_FOUND``,
    ``ILLEGAL_PROGRESSION`` or ``CONFLICT`` without changing anything.  A
    notification failure does not fail the transition.

    In dry-run mode the request is fully validated but nothing is written.
    """
    timer = start_timer()
    if not request.milestone.strip():
        return invalid("milestone is required", field="milestone", elapsed_ms=timer.elapsed_ms)
    actor = ctx.actor_for(request.actor)
    if not actor:
        return invalid("actor is required", field="actor", elapsed_ms=timer.elapsed_ms)

    try:
        if ctx.dry_run:
            return OperationResult.ok(
                _preview_transition(ctx, request), elapsed_ms=timer.elapsed_ms
            )

        outcome = _state_machine(ctx).apply(
            request.build_id,
            request.milestone,
            actor=actor,
            comment=request.comment,
        )
        warnings = []
        if not outcome.notified:
            warnings.append("milestone change was not sent to the change-management system")
        return OperationResult.ok(
            TransitionResult(
                build_id=outcome.build_id,
                previous_milestone=outcome.previous.name,
                milestone=outcome.current.name,
                event_id=outcome.event_id,
                recorded_at=outcome.recorded_at.isoformat(),
                notified=outcome.notified,
            ),
            warnings=warnings,
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="apply_transition", elapsed_ms=timer.elapsed_ms)


def get_milestone_history(
    ctx: OperationContext,
    build_id: int,
) -> OperationResult[list[HistoryEntry]]:
    """Full transition audit trail of a build, oldest first."""
    timer = start_timer()
    try:
        if not BuildRepository(ctx.conn).exists(build_id):
            raise BuildNotFoundError(build_id)
        catalog = _milestone_repo(ctx).load_catalog()
        entries = [
            _to_history_entry(event, catalog)
            for event in MilestoneLedger(ctx.conn).history(build_id)
        ]
        return OperationResult.ok(entries, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(
            exc, operation="get_milestone_history", elapsed_ms=timer.elapsed_ms
        )


def get_available_progressions(
    ctx: OperationContext,
    build_id: int,
) -> OperationResult[list[MilestoneSummary]]:
    """Active milestones the build may move to (level at or above the current one)."""
    timer = start_timer()
    try:
        milestones = _state_machine(ctx).available_progressions(build_id)
        return OperationResult.ok(
            [_to_summary(m) for m in milestones], elapsed_ms=timer.elapsed_ms
        )
    except Exception as exc:
        return fail_from_exception(
            exc, operation="get_available_progressions", elapsed_ms=timer.elapsed_ms
        )


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _preview_transition(ctx: OperationContext, request: ApplyTransitionRequest) -> TransitionResult:
    catalog = _milestone_repo(ctx).load_catalog()
    target = catalog.resolve(request.milestone)
    if target is None:
        raise UnknownMilestoneError(request.milestone)
    build = BuildRepository(ctx.conn).get(request.build_id)
    if build is None:
        raise BuildNotFoundError(request.build_id)
    current = catalog.get(build.milestone_id)
    catalog.check_transition(current, target)
    return TransitionResult(
        build_id=build.id,
        previous_milestone=current.name,
        milestone=target.name,
        dry_run=True,
    )


def _to_summary(milestone: Milestone) -> MilestoneSummary:
    return MilestoneSummary(
        id=milestone.id,
        name=milestone.name,
        level=milestone.level,
        active=milestone.active,
    )


def _to_history_entry(event: MilestoneTransitionEvent, catalog) -> HistoryEntry:
    previous = catalog.get(event.previous_milestone_id)
    new = catalog.get(event.new_milestone_id)
    return HistoryEntry(
        id=event.id,
        build_id=event.build_record_id,
        previous_milestone_id=event.previous_milestone_id,
        previous_milestone=previous.name if previous else None,
        new_milestone_id=event.new_milestone_id,
        new_milestone=new.name if new else None,
        actor=event.actor,
        comment=event.comment,
        recorded_at=event.recorded_at.isoformat(),
    )
