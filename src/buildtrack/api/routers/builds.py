"""
Builds router: build records and their milestone lifecycle.

POST /builds                              Register a build
GET  /builds?component_id=                Builds of a component, newest first
GET  /builds/latest                       Newest build of a component at a milestone
GET  /builds/{id}                         Build detail
PUT  /builds/{id}/result                  Record the build result
PUT  /builds/{id}/artifact                Set the artifact URL
PUT  /builds/{id}/coverage                Set code coverage
PUT  /builds/{id}/steps                   Record a named step result
GET  /builds/{id}/summary                 Build summary report
GET  /builds/{id}/milestone               Current milestone
POST /builds/{id}/milestone               Apply a milestone transition
GET  /builds/{id}/milestone/history       Transition history, oldest first
GET  /builds/{id}/milestone/progressions  Milestones the build may move to

Manifesto:
    Milestone changes go through one endpoint so every change is
    validated, version-guarded and recorded in the history.

Tags:
    buildtrack, api, builds, milestones, audit
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from buildtrack.api.deps import OpContext
from buildtrack.api.schemas.common import SuccessResponse
from buildtrack.api.schemas.domains import (
    ArtifactUrlBody,
    BuildResultBody,
    BuildSchema,
    BuildStepBody,
    BuildStepSchema,
    BuildSummarySchema,
    CodeCoverageBody,
    HistoryEntrySchema,
    MilestoneSchema,
    RegisterBuildBody,
    TransitionBody,
    TransitionSchema,
)
from buildtrack.api.utils import _dc, _envelope, _handle_error

router = APIRouter(prefix="/builds")


# ── Build records ────────────────────────────────────────────────────────


@router.post("", response_model=SuccessResponse[BuildSchema], status_code=201)
def register_build(ctx: OpContext, body: RegisterBuildBody):
    """Register a build at its initial milestone."""
    from buildtrack.ops.builds import register_build as _register
    from buildtrack.ops.requests import RegisterBuildRequest

    result = _register(ctx, RegisterBuildRequest(**body.model_dump()))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildSchema(**_dc(result.data)))


@router.get("", response_model=SuccessResponse[list[BuildSchema]])
def list_builds(
    ctx: OpContext,
    component_id: str = Query(..., description="Component key"),
    limit: int = Query(50, ge=1, le=500, description="Maximum builds returned"),
):
    """Builds of a component, newest first.

    Example:
        GET /api/v1/builds?component_id=core-lib&limit=10
    """
    from buildtrack.ops.builds import list_builds_for_component as _list
    from buildtrack.ops.requests import ListBuildsRequest

    result = _list(ctx, ListBuildsRequest(component_id=component_id, limit=limit))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, [BuildSchema(**_dc(b)) for b in result.data or []])


@router.get("/latest", response_model=SuccessResponse[BuildSchema])
def find_latest_build(
    ctx: OpContext,
    component_id: str = Query(..., description="Component key"),
    milestone: str = Query(..., description="Minimum milestone name"),
    exact: bool = Query(False, description="Require exactly this milestone"),
):
    """Find the newest build of a component at (or above) a milestone.

    Example:
        GET /api/v1/builds/latest?component_id=core-lib&milestone=QA
    """
    from buildtrack.ops.builds import find_latest_build as _find
    from buildtrack.ops.requests import FindLatestBuildRequest

    result = _find(ctx, FindLatestBuildRequest(component_id=component_id, milestone=milestone, exact=exact))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildSchema(**_dc(result.data)))


@router.get("/{build_id}", response_model=SuccessResponse[BuildSchema])
def get_build(ctx: OpContext, build_id: int):
    from buildtrack.ops.builds import get_build as _get

    result = _get(ctx, build_id)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildSchema(**_dc(result.data)))


@router.put("/{build_id}/result", response_model=SuccessResponse[BuildSchema])
def record_build_result(ctx: OpContext, build_id: int, body: BuildResultBody):
    from buildtrack.ops.builds import record_build_result as _record
    from buildtrack.ops.requests import RecordBuildResultRequest

    result = _record(ctx, RecordBuildResultRequest(build_id=build_id, result=body.result, comment=body.comment))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildSchema(**_dc(result.data)))


@router.put("/{build_id}/artifact", response_model=SuccessResponse[BuildSchema])
def set_artifact_url(ctx: OpContext, build_id: int, body: ArtifactUrlBody):
    from buildtrack.ops.builds import set_artifact_url as _set
    from buildtrack.ops.requests import SetArtifactUrlRequest

    result = _set(ctx, SetArtifactUrlRequest(build_id=build_id, artifact_url=body.artifact_url))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildSchema(**_dc(result.data)))


@router.put("/{build_id}/coverage", response_model=SuccessResponse[BuildSchema])
def set_code_coverage(ctx: OpContext, build_id: int, body: CodeCoverageBody):
    from buildtrack.ops.builds import set_code_coverage as _set
    from buildtrack.ops.requests import SetCodeCoverageRequest

    result = _set(ctx, SetCodeCoverageRequest(build_id=build_id, coverage=body.coverage))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildSchema(**_dc(result.data)))


@router.put("/{build_id}/steps", response_model=SuccessResponse[BuildStepSchema])
def record_build_step(ctx: OpContext, build_id: int, body: BuildStepBody):
    """Record a named step result; recording the same step again replaces it.

    Example:
        PUT /api/v1/builds/3/steps
        {"step_name": "unit-tests", "step_result": "passed"}
    """
    from buildtrack.ops.builds import record_build_step as _record
    from buildtrack.ops.requests import RecordBuildStepRequest

    result = _record(
        ctx,
        RecordBuildStepRequest(build_id=build_id, step_name=body.step_name, step_result=body.step_result),
    )
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildStepSchema(**_dc(result.data)))


@router.get("/{build_id}/summary", response_model=SuccessResponse[BuildSummarySchema])
def get_build_summary(ctx: OpContext, build_id: int):
    from buildtrack.ops.builds import get_build_summary as _summary

    result = _summary(ctx, build_id)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BuildSummarySchema(**_dc(result.data)))


# ── Milestone lifecycle ──────────────────────────────────────────────────


@router.get("/{build_id}/milestone", response_model=SuccessResponse[MilestoneSchema])
def get_current_milestone(ctx: OpContext, build_id: int):
    from buildtrack.ops.milestones import get_current_milestone as _current

    result = _current(ctx, build_id)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, MilestoneSchema(**_dc(result.data)))


@router.post("/{build_id}/milestone", response_model=SuccessResponse[TransitionSchema])
def apply_transition(
    ctx: OpContext,
    build_id: int,
    body: TransitionBody,
    dry_run: bool = Query(False, description="Validate without writing"),
):
    """Move a build to another milestone.

    Fails with 400 ``UNKNOWN_MILESTONE``, 404 ``BUILD_NOT_FOUND``,
    409 ``ILLEGAL_PROGRESSION`` or 409 ``CONFLICT``.  A failed
    notification is reported in ``warnings``; the transition stands.

    Example:
        POST /api/v1/builds/3/milestone
        {"milestone": "QA", "actor": "alice", "comment": "smoke tests green"}
    """
    from buildtrack.ops.milestones import apply_transition as _apply
    from buildtrack.ops.requests import ApplyTransitionRequest

    ctx.dry_run = dry_run
    request = ApplyTransitionRequest(
        build_id=build_id,
        milestone=body.milestone,
        actor=body.actor,
        comment=body.comment,
    )
    result = _apply(ctx, request)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, TransitionSchema(**_dc(result.data)))


@router.get("/{build_id}/milestone/history", response_model=SuccessResponse[list[HistoryEntrySchema]])
def get_milestone_history(ctx: OpContext, build_id: int):
    """Every transition of the build, oldest first."""
    from buildtrack.ops.milestones import get_milestone_history as _history

    result = _history(ctx, build_id)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, [HistoryEntrySchema(**_dc(e)) for e in result.data or []])


@router.get("/{build_id}/milestone/progressions", response_model=SuccessResponse[list[MilestoneSchema]])
def get_available_progressions(ctx: OpContext, build_id: int):
    from buildtrack.ops.milestones import get_available_progressions as _progressions

    result = _progressions(ctx, build_id)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, [MilestoneSchema(**_dc(m)) for m in result.data or []])
