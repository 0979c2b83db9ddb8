"""
Milestones router: the milestone catalog.

GET  /milestones            List milestones ordered by level
POST /milestones            Define a milestone
GET  /milestones/{name}     Resolve a milestone by name (case-insensitive)

Tags:
    buildtrack, api, milestones
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from buildtrack.api.deps import OpContext
from buildtrack.api.schemas.common import SuccessResponse
from buildtrack.api.schemas.domains import DefineMilestoneBody, MilestoneSchema
from buildtrack.api.utils import _dc, _envelope, _handle_error

router = APIRouter(prefix="/milestones")


@router.get("", response_model=SuccessResponse[list[MilestoneSchema]])
def list_milestones(
    ctx: OpContext,
    include_inactive: bool = Query(False, description="Include inactive milestones"),
):
    """List configured milestones, lowest level first."""
    from buildtrack.ops.milestones import list_milestones as _list
    from buildtrack.ops.requests import ListMilestonesRequest

    result = _list(ctx, ListMilestonesRequest(include_inactive=include_inactive))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, [MilestoneSchema(**_dc(m)) for m in result.data or []])


@router.post("", response_model=SuccessResponse[MilestoneSchema], status_code=201)
def define_milestone(ctx: OpContext, body: DefineMilestoneBody):
    """Add a milestone to the catalog.  Names are unique ignoring case."""
    from buildtrack.ops.milestones import define_milestone as _define
    from buildtrack.ops.requests import DefineMilestoneRequest

    result = _define(ctx, DefineMilestoneRequest(name=body.name, level=body.level, active=body.active))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, MilestoneSchema(**_dc(result.data)))


@router.get("/{name}", response_model=SuccessResponse[MilestoneSchema])
def resolve_milestone(ctx: OpContext, name: str):
    """Look up a milestone by display name.  Unknown names return 400 ``UNKNOWN_MILESTONE``."""
    from buildtrack.ops.milestones import resolve_milestone as _resolve

    result = _resolve(ctx, name)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, MilestoneSchema(**_dc(result.data)))
