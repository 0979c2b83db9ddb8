"""
Database operations.

Thin wrappers around :mod:`buildtrack.core.schema_loader` for table
creation and catalog seeding.
"""

from __future__ import annotations

from buildtrack.core.logging import get_logger
from buildtrack.core.repositories import MilestoneRepository
from buildtrack.core.schema_loader import apply_all_schemas, table_names_from_ddl
from buildtrack.ops.context import OperationContext
from buildtrack.ops.failures import fail_from_exception
from buildtrack.ops.requests import DatabaseInitRequest
from buildtrack.ops.responses import DatabaseInitResult
from buildtrack.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

DEFAULT_MILESTONES: tuple[tuple[str, int], ...] = (
    ("Dev", 0),
    ("QA", 10),
    ("Staging", 20),
    ("Release", 30),
)


def _milestone_repo(ctx: OperationContext) -> MilestoneRepository:
    return MilestoneRepository(ctx.conn)


def initialize_database(
    ctx: OperationContext,
    request: DatabaseInitRequest | None = None,
) -> OperationResult[DatabaseInitResult]:
    """Create all buildtrack tables (idempotent), optionally seeding milestones."""
    request = request or DatabaseInitRequest()
    timer = start_timer()

    if ctx.dry_run:
        return OperationResult.ok(
            DatabaseInitResult(tables_created=table_names_from_ddl(), dry_run=True),
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        apply_all_schemas(ctx.conn)
        seeded = 0
        if request.seed_milestones:
            repo = _milestone_repo(ctx)
            if not repo.list_all():
                with repo.transaction():
                    for name, level in DEFAULT_MILESTONES:
                        repo.create(name, level)
                seeded = len(DEFAULT_MILESTONES)
                logger.info("milestones.seeded", count=seeded)
        return OperationResult.ok(
            DatabaseInitResult(tables_created=table_names_from_ddl(), milestones_seeded=seeded),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="initialize_database", elapsed_ms=timer.elapsed_ms)
