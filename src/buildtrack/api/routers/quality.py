"""
Quality router: versioned quality gate configuration.

GET  /quality-gates                   Latest active version of every gate
POST /quality-gates                   Create a gate
PUT  /quality-gates/{name}            Supersede a gate with a new version
GET  /quality-gates/{name}/versions   Every stored version, newest first

Manifesto:
    Gates are never edited in place so historical builds can still
    report the thresholds that applied when they ran.

Tags:
    buildtrack, api, quality, versioning
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from buildtrack.api.deps import OpContext
from buildtrack.api.schemas.common import SuccessResponse
from buildtrack.api.schemas.domains import (
    CreateQualityGateBody,
    GateVersionSchema,
    QualityGateBody,
    QualityGateSchema,
)
from buildtrack.api.utils import _dc, _envelope, _handle_error

router = APIRouter(prefix="/quality-gates")


@router.get("", response_model=SuccessResponse[list[QualityGateSchema]])
def list_active_quality_gates(ctx: OpContext):
    """List the newest active version of each gate, sorted by name."""
    from buildtrack.ops.quality_gates import list_active_quality_gates as _list

    result = _list(ctx)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, [QualityGateSchema(**_dc(g)) for g in result.data or []])


@router.post("", response_model=SuccessResponse[GateVersionSchema], status_code=201)
def create_quality_gate(
    ctx: OpContext,
    body: CreateQualityGateBody,
    dry_run: bool = Query(False, description="Validate without writing"),
):
    """Create a gate.  Returns 409 ``DUPLICATE_ACTIVE_GATE`` if the name is active."""
    from buildtrack.ops.quality_gates import create_quality_gate as _create
    from buildtrack.ops.requests import QualityGateRequest

    ctx.dry_run = dry_run
    result = _create(ctx, QualityGateRequest(**body.model_dump()))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, GateVersionSchema(id=result.data, name=body.name.strip()))


@router.put("/{name}", response_model=SuccessResponse[GateVersionSchema])
def update_quality_gate(
    ctx: OpContext,
    name: str,
    body: QualityGateBody,
    dry_run: bool = Query(False, description="Validate without writing"),
):
    """Deactivate every stored version of *name* and insert a new active one.

    Example:
        PUT /api/v1/quality-gates/CodeCov
        {"pass_threshold": 80, "fail_threshold": 60}
    """
    from buildtrack.ops.quality_gates import update_quality_gate as _update
    from buildtrack.ops.requests import QualityGateRequest

    ctx.dry_run = dry_run
    result = _update(ctx, QualityGateRequest(name=name, **body.model_dump()))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, GateVersionSchema(id=result.data, name=name.strip()))


@router.get("/{name}/versions", response_model=SuccessResponse[list[QualityGateSchema]])
def list_quality_gate_versions(ctx: OpContext, name: str):
    from buildtrack.ops.quality_gates import list_quality_gate_versions as _versions

    result = _versions(ctx, name)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, [QualityGateSchema(**_dc(g)) for g in result.data or []])
