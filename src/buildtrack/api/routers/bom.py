"""
BOM router: bills of materials, dependency edges and provenance views.

POST /builds/{id}/bom                      Create the build's BOM
GET  /builds/{id}/bom                      BOM header with edge counts
POST /builds/{id}/bom/lock                 Lock the BOM against edits
PUT  /builds/{id}/bom/external-reference   Set the notification key
POST /builds/{id}/bom/internal             Add an internal dependency
POST /builds/{id}/bom/external             Add an external dependency
GET  /builds/{id}/dependencies/graph       Provenance as nodes and edges
GET  /builds/{id}/dependencies/table       Provenance as depth-first rows

Tags:
    buildtrack, api, bom, provenance
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from buildtrack.api.deps import OpContext
from buildtrack.api.schemas.common import SuccessResponse
from buildtrack.api.schemas.domains import (
    BomSchema,
    CreateBomBody,
    ExternalDependencyBody,
    ExternalReferenceBody,
    InternalDependencyBody,
)
from buildtrack.api.utils import _dc, _envelope, _handle_error

router = APIRouter(prefix="/builds/{build_id}")


# ── BOM ──────────────────────────────────────────────────────────────────


@router.post("/bom", response_model=SuccessResponse[BomSchema], status_code=201)
def create_bom(ctx: OpContext, build_id: int, body: CreateBomBody):
    from buildtrack.ops.dependencies import create_bom as _create
    from buildtrack.ops.requests import CreateBomRequest

    result = _create(ctx, CreateBomRequest(build_id=build_id, **body.model_dump()))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BomSchema(**_dc(result.data)))


@router.get("/bom", response_model=SuccessResponse[BomSchema])
def get_bom(ctx: OpContext, build_id: int):
    from buildtrack.ops.dependencies import get_bom as _get

    result = _get(ctx, build_id)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BomSchema(**_dc(result.data)))


@router.post("/bom/lock", response_model=SuccessResponse[BomSchema])
def lock_bom(ctx: OpContext, build_id: int):
    """Lock the BOM.  Edge additions afterwards fail with 423 ``LOCKED``."""
    from buildtrack.ops.dependencies import lock_bom as _lock

    result = _lock(ctx, build_id)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BomSchema(**_dc(result.data)))


@router.put("/bom/external-reference", response_model=SuccessResponse[BomSchema])
def set_external_reference(ctx: OpContext, build_id: int, body: ExternalReferenceBody):
    from buildtrack.ops.dependencies import set_external_reference as _set
    from buildtrack.ops.requests import SetExternalReferenceRequest

    request = SetExternalReferenceRequest(build_id=build_id, external_reference_id=body.external_reference_id)
    result = _set(ctx, request)
    if not result.success:
        return _handle_error(result)
    return _envelope(result, BomSchema(**_dc(result.data)))


# ── Edges ────────────────────────────────────────────────────────────────


@router.post("/bom/internal", response_model=SuccessResponse[dict[str, Any]], status_code=201)
def add_internal_dependency(ctx: OpContext, build_id: int, body: InternalDependencyBody):
    from buildtrack.ops.dependencies import add_internal_dependency as _add
    from buildtrack.ops.requests import AddInternalDependencyRequest

    result = _add(ctx, AddInternalDependencyRequest(build_id=build_id, **body.model_dump()))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, result.data)


@router.post("/bom/external", response_model=SuccessResponse[dict[str, Any]], status_code=201)
def add_external_dependency(ctx: OpContext, build_id: int, body: ExternalDependencyBody):
    from buildtrack.ops.dependencies import add_external_dependency as _add
    from buildtrack.ops.requests import AddExternalDependencyRequest

    result = _add(ctx, AddExternalDependencyRequest(build_id=build_id, **body.model_dump()))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, result.data)


# ── Provenance views ─────────────────────────────────────────────────────


@router.get("/dependencies/graph", response_model=SuccessResponse[dict[str, Any]])
def get_dependency_graph(
    ctx: OpContext,
    build_id: int,
    max_depth: int | None = Query(None, ge=1, le=100, description="Levels of internal builds to expand"),
):
    """Everything the build incorporates, as graph nodes and edges.

    An unknown build returns an empty graph, not 404.
    """
    from buildtrack.ops.dependencies import build_dependency_graph
    from buildtrack.ops.requests import DependencyViewRequest

    result = build_dependency_graph(ctx, DependencyViewRequest(build_id=build_id, max_depth=max_depth))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, result.data.to_dict())


@router.get("/dependencies/table", response_model=SuccessResponse[dict[str, Any]])
def get_dependency_table(
    ctx: OpContext,
    build_id: int,
    max_depth: int | None = Query(None, ge=1, le=100, description="Levels of internal builds to expand"),
):
    """Everything the build incorporates, one row per edge in depth-first order."""
    from buildtrack.ops.dependencies import build_dependency_table
    from buildtrack.ops.requests import DependencyViewRequest

    result = build_dependency_table(ctx, DependencyViewRequest(build_id=build_id, max_depth=max_depth))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, result.data.to_dict())
