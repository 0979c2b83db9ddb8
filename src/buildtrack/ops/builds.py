"""
Build record operations.

Registration, lookup and listing, post-hoc result/artifact/coverage fields,
named step results, the per-build summary report, and the "latest build of
a component at a milestone" search.  None of these touch the milestone
column after registration; that is the state machine's job.
"""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from typing import Any

from buildtrack.core.errors import (
    BuildNotFoundError,
    DuplicateRecordError,
    UnknownMilestoneError,
)
from buildtrack.core.logging import get_logger
from buildtrack.core.models import BuildRecord
from buildtrack.core.repositories import (
    BomRepository,
    BuildRepository,
    BuildStepRepository,
    MilestoneHistoryRepository,
    MilestoneRepository,
)
from buildtrack.ops.context import OperationContext
from buildtrack.ops.failures import conflict_as, fail_from_exception, invalid
from buildtrack.ops.requests import (
    FindLatestBuildRequest,
    ListBuildsRequest,
    RecordBuildResultRequest,
    RecordBuildStepRequest,
    RegisterBuildRequest,
    SetArtifactUrlRequest,
    SetCodeCoverageRequest,
)
from buildtrack.ops.responses import BuildDetail, BuildStepDetail, BuildSummary
from buildtrack.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def _build_repo(ctx: OperationContext) -> BuildRepository:
    return BuildRepository(ctx.conn)


def _milestone_repo(ctx: OperationContext) -> MilestoneRepository:
    return MilestoneRepository(ctx.conn)


def _step_repo(ctx: OperationContext) -> BuildStepRepository:
    return BuildStepRepository(ctx.conn)


def register_build(
    ctx: OperationContext,
    request: RegisterBuildRequest,
) -> OperationResult[BuildDetail]:
    """Create a build record at its initial milestone.

    A build is identified by ``(component_id, build_number, branch)``;
    registering the same triple twice fails with ``CONFLICT``.
    """
    timer = start_timer()
    for field_name in ("component_id", "build_number", "milestone"):
        if not str(getattr(request, field_name)).strip():
            return invalid(f"{field_name} is required", field=field_name, elapsed_ms=timer.elapsed_ms)

    try:
        milestone = _milestone_repo(ctx).load_catalog().resolve(request.milestone)
        if milestone is None:
            raise UnknownMilestoneError(request.milestone)

        repo = _build_repo(ctx)
        if repo.find_by_key(request.component_id, request.build_number, request.branch):
            raise _duplicate_build(request)

        if ctx.dry_run:
            return OperationResult.ok(
                BuildDetail(
                    component_id=request.component_id,
                    build_number=request.build_number,
                    branch=request.branch,
                    milestone_id=milestone.id,
                    milestone=milestone.name,
                    artifact_url=request.artifact_url,
                ),
                elapsed_ms=timer.elapsed_ms,
            )

        with conflict_as(_duplicate_build(request)), repo.transaction():
            build_id = repo.create(
                component_id=request.component_id,
                build_number=request.build_number,
                branch=request.branch,
                milestone_id=milestone.id,
                artifact_url=request.artifact_url,
            )
        logger.info(
            "build.registered",
            build_id=build_id,
            component_id=request.component_id,
            milestone=milestone.name,
        )
        return _detail(ctx, build_id, timer)
    except Exception as exc:
        return fail_from_exception(exc, operation="register_build", elapsed_ms=timer.elapsed_ms)


def get_build(ctx: OperationContext, build_id: int) -> OperationResult[BuildDetail]:
    """Get a single build record."""
    timer = start_timer()
    try:
        return _detail(ctx, build_id, timer)
    except Exception as exc:
        return fail_from_exception(exc, operation="get_build", elapsed_ms=timer.elapsed_ms)


def record_build_result(
    ctx: OperationContext,
    request: RecordBuildResultRequest,
) -> OperationResult[BuildDetail]:
    """Set the final result and comment.  Independent of the milestone."""
    timer = start_timer()
    if not request.result.strip():
        return invalid("result is required", field="result", elapsed_ms=timer.elapsed_ms)
    return _update_fields(
        ctx,
        request.build_id,
        {"build_result": request.result, "build_comment": request.comment},
        operation="record_build_result",
        timer=timer,
    )


def set_artifact_url(
    ctx: OperationContext,
    request: SetArtifactUrlRequest,
) -> OperationResult[BuildDetail]:
    timer = start_timer()
    if not request.artifact_url.strip():
        return invalid("artifact_url is required", field="artifact_url", elapsed_ms=timer.elapsed_ms)
    return _update_fields(
        ctx,
        request.build_id,
        {"artifact_url": request.artifact_url},
        operation="set_artifact_url",
        timer=timer,
    )


def set_code_coverage(
    ctx: OperationContext,
    request: SetCodeCoverageRequest,
) -> OperationResult[BuildDetail]:
    """Record line coverage as a percentage (0-100)."""
    timer = start_timer()
    if not 0.0 <= request.coverage <= 100.0:
        return invalid("coverage must be between 0 and 100", field="coverage", elapsed_ms=timer.elapsed_ms)
    return _update_fields(
        ctx,
        request.build_id,
        {"code_coverage": request.coverage},
        operation="set_code_coverage",
        timer=timer,
    )


def find_latest_build(
    ctx: OperationContext,
    request: FindLatestBuildRequest,
) -> OperationResult[BuildDetail]:
    """Find a component's build at the highest milestone at or above *milestone*.

    With ``exact`` only builds at exactly that milestone qualify.  Among
    equals the newest build wins.  ``NOT_FOUND`` when nothing qualifies.
    """
    timer = start_timer()
    if not request.component_id.strip():
        return invalid("component_id is required", field="component_id", elapsed_ms=timer.elapsed_ms)

    try:
        catalog = _milestone_repo(ctx).load_catalog()
        if request.milestone:
            milestone = catalog.resolve(request.milestone)
            if milestone is None:
                raise UnknownMilestoneError(request.milestone)
            level = milestone.level
        else:
            levels = [m.level for m in catalog]
            level = min(levels) if levels else 0

        build = _build_repo(ctx).find_latest_at_level(
            request.component_id, level, exact=request.exact and bool(request.milestone)
        )
        if build is None:
            return OperationResult.fail(
                "NOT_FOUND",
                f"No build of component {request.component_id!r} matches the milestone filter",
                elapsed_ms=timer.elapsed_ms,
            )
        return OperationResult.ok(_to_detail(build, catalog.get(build.milestone_id)), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="find_latest_build", elapsed_ms=timer.elapsed_ms)


def list_builds_for_component(
    ctx: OperationContext,
    request: ListBuildsRequest,
) -> OperationResult[list[BuildDetail]]:
    """Builds of one component, newest registration first.

    An unknown component yields an empty list, not an error.
    """
    timer = start_timer()
    if not request.component_id.strip():
        return invalid("component_id is required", field="component_id", elapsed_ms=timer.elapsed_ms)
    if request.limit < 1:
        return invalid("limit must be at least 1", field="limit", elapsed_ms=timer.elapsed_ms)

    try:
        catalog = _milestone_repo(ctx).load_catalog()
        builds = _build_repo(ctx).list_for_component(request.component_id, limit=request.limit)
        return OperationResult.ok(
            [_to_detail(b, catalog.get(b.milestone_id)) for b in builds],
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="list_builds_for_component", elapsed_ms=timer.elapsed_ms)


def record_build_step(
    ctx: OperationContext,
    request: RecordBuildStepRequest,
) -> OperationResult[BuildStepDetail]:
    """Record the outcome of a named build step.

    The first call for a step name inserts it (``created=True``); later
    calls overwrite its result and timestamp.
    """
    timer = start_timer()
    for field_name in ("step_name", "step_result"):
        if not getattr(request, field_name).strip():
            return invalid(f"{field_name} is required", field=field_name, elapsed_ms=timer.elapsed_ms)
    step_name = request.step_name.strip()
    step_result = request.step_result.strip()

    try:
        if not _build_repo(ctx).exists(request.build_id):
            raise BuildNotFoundError(request.build_id)

        steps = _step_repo(ctx)
        recorded_at = datetime.now(UTC).isoformat()
        if ctx.dry_run:
            existing = steps.get(request.build_id, step_name)
            return OperationResult.ok(
                BuildStepDetail(
                    id=existing.id if existing else 0,
                    build_id=request.build_id,
                    step_name=step_name,
                    step_result=step_result,
                    recorded_at=recorded_at,
                    created=existing is None,
                ),
                elapsed_ms=timer.elapsed_ms,
            )

        duplicate = DuplicateRecordError(
            f"Step {step_name!r} of build {request.build_id} was recorded concurrently"
        ).with_context(build_id=request.build_id, step_name=step_name)
        with conflict_as(duplicate), steps.transaction():
            step_id, created = steps.record(request.build_id, step_name, step_result, recorded_at)
        logger.info(
            "build.step_recorded",
            build_id=request.build_id,
            step_name=step_name,
            step_result=step_result,
            created=created,
        )
        return OperationResult.ok(
            BuildStepDetail(
                id=step_id,
                build_id=request.build_id,
                step_name=step_name,
                step_result=step_result,
                recorded_at=recorded_at,
                created=created,
            ),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="record_build_step", elapsed_ms=timer.elapsed_ms)


def get_build_summary(ctx: OperationContext, build_id: int) -> OperationResult[BuildSummary]:
    """High-level report on one build.

    Combines the build record with its recorded steps, BOM edge counts and
    the size of its milestone history.
    """
    timer = start_timer()
    try:
        detail = _load_detail(ctx, build_id)
        steps = [
            BuildStepDetail(
                id=s.id,
                build_id=s.build_record_id,
                step_name=s.step_name,
                step_result=s.step_result,
                recorded_at=s.recorded_at,
            )
            for s in _step_repo(ctx).list_for_build(build_id)
        ]

        boms = BomRepository(ctx.conn)
        bom = boms.get_for_build(build_id)
        history = MilestoneHistoryRepository(ctx.conn).list_for_build(build_id)

        summary = BuildSummary(
            build=detail,
            steps=steps,
            step_results=dict(Counter(s.step_result for s in steps)),
            has_bom=bom is not None,
            bom_locked=bool(bom and bom.locked),
            internal_count=len(boms.internal_edges(build_id)) if bom else 0,
            external_count=len(boms.external_edges(build_id)) if bom else 0,
            transition_count=len(history),
            last_transition_at=history[-1]["recorded_at"] if history else None,
        )
        return OperationResult.ok(summary, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="get_build_summary", elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _update_fields(
    ctx: OperationContext,
    build_id: int,
    fields: dict[str, Any],
    *,
    operation: str,
    timer: Any,
) -> OperationResult[BuildDetail]:
    try:
        repo = _build_repo(ctx)
        if not repo.exists(build_id):
            raise BuildNotFoundError(build_id)
        if not ctx.dry_run:
            with repo.transaction():
                repo.set_fields(build_id, fields)
            logger.info("build.updated", build_id=build_id, fields=sorted(fields))
        return _detail(ctx, build_id, timer)
    except Exception as exc:
        return fail_from_exception(exc, operation=operation, elapsed_ms=timer.elapsed_ms)


def _detail(ctx: OperationContext, build_id: int, timer: Any) -> OperationResult[BuildDetail]:
    return OperationResult.ok(_load_detail(ctx, build_id), elapsed_ms=timer.elapsed_ms)


def _load_detail(ctx: OperationContext, build_id: int) -> BuildDetail:
    build = _build_repo(ctx).get(build_id)
    if build is None:
        raise BuildNotFoundError(build_id)
    return _to_detail(build, _milestone_repo(ctx).get_by_id(build.milestone_id))


def _to_detail(build: BuildRecord, milestone) -> BuildDetail:
    return BuildDetail(
        id=build.id,
        component_id=build.component_id,
        build_number=build.build_number,
        branch=build.branch,
        milestone_id=build.milestone_id,
        milestone=milestone.name if milestone else None,
        build_result=build.build_result,
        build_comment=build.build_comment,
        artifact_url=build.artifact_url,
        code_coverage=build.code_coverage,
        created_at=build.created_at,
    )


def _duplicate_build(request: RegisterBuildRequest) -> DuplicateRecordError:
    return DuplicateRecordError(
        f"Build {request.build_number!r} of component {request.component_id!r} "
        f"on branch {request.branch!r} already exists"
    ).with_context(component_id=request.component_id, build_number=request.build_number)
