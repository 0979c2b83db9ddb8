"""
Database router: schema initialisation.

POST /database/init

Tags:
    buildtrack, api, database, admin
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from buildtrack.api.deps import OpContext
from buildtrack.api.schemas.common import SuccessResponse
from buildtrack.api.schemas.domains import DatabaseInitBody, DatabaseInitSchema
from buildtrack.api.utils import _dc, _envelope, _handle_error

router = APIRouter(prefix="/database")


@router.post("/init", response_model=SuccessResponse[DatabaseInitSchema])
def init_database(
    ctx: OpContext,
    body: DatabaseInitBody | None = None,
    dry_run: bool = Query(False, description="Report the tables without creating them"),
):
    """Create every table (idempotent) and optionally seed default milestones."""
    from buildtrack.ops.database import initialize_database
    from buildtrack.ops.requests import DatabaseInitRequest

    ctx.dry_run = dry_run
    seed = body.seed_milestones if body else False
    result = initialize_database(ctx, DatabaseInitRequest(seed_milestones=seed))
    if not result.success:
        return _handle_error(result)
    return _envelope(result, DatabaseInitSchema(**_dc(result.data)))
