"""
BOM and dependency provenance operations.

Recording side: create a BOM for a build, append internal and external
dependency edges while it is unlocked, set the change-management
reference, lock it.  Reading side: the graph and table provenance views
assembled by :class:`buildtrack.core.provenance.DependencyGraphAssembler`.
"""

from __future__ import annotations

from typing import Any

from buildtrack.core.errors import (
    BomLockedError,
    BomNotFoundError,
    BuildNotFoundError,
    DuplicateRecordError,
)
from buildtrack.core.logging import get_logger
from buildtrack.core.models import Bom
from buildtrack.core.provenance import DependencyGraphAssembler, GraphView, TableView
from buildtrack.core.repositories import BomRepository, BuildRepository
from buildtrack.core.settings import get_settings
from buildtrack.ops.context import OperationContext
from buildtrack.ops.failures import conflict_as, fail_from_exception, invalid
from buildtrack.ops.requests import (
    AddExternalDependencyRequest,
    AddInternalDependencyRequest,
    CreateBomRequest,
    DependencyViewRequest,
    SetExternalReferenceRequest,
)
from buildtrack.ops.responses import BomDetail
from buildtrack.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def _bom_repo(ctx: OperationContext) -> BomRepository:
    return BomRepository(ctx.conn)


def _assembler(ctx: OperationContext, max_depth: int | None) -> DependencyGraphAssembler:
    return DependencyGraphAssembler(
        ctx.conn, max_depth=max_depth or get_settings().dependency_max_depth
    )


# ------------------------------------------------------------------ #
# BOM header
# ------------------------------------------------------------------ #


def create_bom(ctx: OperationContext, request: CreateBomRequest) -> OperationResult[BomDetail]:
    """Create the (single) BOM of a build record."""
    timer = start_timer()
    try:
        if not BuildRepository(ctx.conn).exists(request.build_id):
            raise BuildNotFoundError(request.build_id)
        repo = _bom_repo(ctx)
        if repo.get_for_build(request.build_id) is not None:
            raise _duplicate_bom(request.build_id)

        if ctx.dry_run:
            return OperationResult.ok(
                BomDetail(
                    build_id=request.build_id,
                    bom_type=request.bom_type,
                    build_system=request.build_system,
                    build_system_version=request.build_system_version,
                    external_reference_id=request.external_reference_id,
                ),
                elapsed_ms=timer.elapsed_ms,
            )

        with conflict_as(_duplicate_bom(request.build_id)), repo.transaction():
            repo.create(
                build_record_id=request.build_id,
                bom_type=request.bom_type,
                build_system=request.build_system,
                build_system_version=request.build_system_version,
                external_reference_id=request.external_reference_id,
            )
        logger.info("bom.created", build_id=request.build_id, bom_type=request.bom_type)
        return OperationResult.ok(_bom_detail(ctx, request.build_id), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="create_bom", elapsed_ms=timer.elapsed_ms)


def get_bom(ctx: OperationContext, build_id: int) -> OperationResult[BomDetail]:
    timer = start_timer()
    try:
        return OperationResult.ok(_bom_detail(ctx, build_id), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="get_bom", elapsed_ms=timer.elapsed_ms)


def lock_bom(ctx: OperationContext, build_id: int) -> OperationResult[BomDetail]:
    """Lock a BOM against further edges and metadata changes.

    Locking an already locked BOM fails with ``CONFLICT``.
    """
    timer = start_timer()
    try:
        repo = _bom_repo(ctx)
        bom = repo.get_for_build(build_id)
        if bom is None:
            raise BomNotFoundError(build_id)
        if bom.locked:
            raise DuplicateRecordError(
                f"BOM for build record {build_id} is already locked"
            ).with_context(build_id=build_id)
        if not ctx.dry_run:
            with repo.transaction():
                repo.set_locked(bom.id)
            logger.info("bom.locked", build_id=build_id)
        return OperationResult.ok(_bom_detail(ctx, build_id), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="lock_bom", elapsed_ms=timer.elapsed_ms)


def set_external_reference(
    ctx: OperationContext,
    request: SetExternalReferenceRequest,
) -> OperationResult[BomDetail]:
    """Set the change-management record that milestone notifications address."""
    timer = start_timer()
    if not request.external_reference_id.strip():
        return invalid(
            "external_reference_id is required",
            field="external_reference_id",
            elapsed_ms=timer.elapsed_ms,
        )
    try:
        repo = _bom_repo(ctx)
        bom = _unlocked_bom(repo, request.build_id)
        if not ctx.dry_run:
            with repo.transaction():
                repo.set_external_reference(bom.id, request.external_reference_id)
            logger.info(
                "bom.external_reference_set",
                build_id=request.build_id,
                external_reference_id=request.external_reference_id,
            )
        return OperationResult.ok(_bom_detail(ctx, request.build_id), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="set_external_reference", elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Edges
# ------------------------------------------------------------------ #


def add_internal_dependency(
    ctx: OperationContext,
    request: AddInternalDependencyRequest,
) -> OperationResult[dict[str, Any]]:
    """Record that a build incorporates another build record.

    The dependency must already exist; a build may not depend on itself.
    ``scm_order`` must be unused among the build's internal edges.
    """
    timer = start_timer()
    if request.dependency_build_id == request.build_id:
        return invalid(
            "a build cannot depend on itself",
            field="dependency_build_id",
            elapsed_ms=timer.elapsed_ms,
        )
    try:
        repo = _bom_repo(ctx)
        bom = _unlocked_bom(repo, request.build_id)
        if not BuildRepository(ctx.conn).exists(request.dependency_build_id):
            raise BuildNotFoundError(request.dependency_build_id)
        _check_scm_order(repo, repo.INTERNAL_TABLE, request.build_id, request.scm_order)

        if ctx.dry_run:
            return OperationResult.ok(
                {"dry_run": True, "would_add": request.dependency_build_id},
                elapsed_ms=timer.elapsed_ms,
            )

        with conflict_as(_duplicate_scm_order(request.build_id, request.scm_order)), repo.transaction():
            edge_id = repo.add_internal(
                bom_id=bom.id,
                build_record_id=request.build_id,
                dependency_build_record_id=request.dependency_build_id,
                scm_order=request.scm_order,
                bom_type=request.bom_type or bom.bom_type,
            )
        logger.info(
            "bom.internal_dependency_added",
            build_id=request.build_id,
            dependency_build_id=request.dependency_build_id,
            scm_order=request.scm_order,
        )
        return OperationResult.ok(
            {"id": edge_id, "kind": "internal", "scm_order": request.scm_order},
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="add_internal_dependency", elapsed_ms=timer.elapsed_ms)


def add_external_dependency(
    ctx: OperationContext,
    request: AddExternalDependencyRequest,
) -> OperationResult[dict[str, Any]]:
    """Record that a build incorporates a package from outside the system."""
    timer = start_timer()
    if not request.project_name.strip():
        return invalid("project_name is required", field="project_name", elapsed_ms=timer.elapsed_ms)
    try:
        repo = _bom_repo(ctx)
        bom = _unlocked_bom(repo, request.build_id)
        _check_scm_order(repo, repo.EXTERNAL_TABLE, request.build_id, request.scm_order)

        if ctx.dry_run:
            return OperationResult.ok(
                {"dry_run": True, "would_add": request.project_name},
                elapsed_ms=timer.elapsed_ms,
            )

        with conflict_as(_duplicate_scm_order(request.build_id, request.scm_order)), repo.transaction():
            edge_id = repo.add_external(
                bom_id=bom.id,
                build_record_id=request.build_id,
                fields={
                    "project_name": request.project_name,
                    "scm_order": request.scm_order,
                    "version": request.version,
                    "build_number": request.build_number,
                    "package_number": request.package_number,
                    "master_id": request.master_id,
                    "bom_type": request.bom_type or bom.bom_type,
                },
            )
        logger.info(
            "bom.external_dependency_added",
            build_id=request.build_id,
            project_name=request.project_name,
            scm_order=request.scm_order,
        )
        return OperationResult.ok(
            {"id": edge_id, "kind": "external", "scm_order": request.scm_order},
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return fail_from_exception(exc, operation="add_external_dependency", elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Provenance views
# ------------------------------------------------------------------ #


def build_dependency_graph(
    ctx: OperationContext,
    request: DependencyViewRequest,
) -> OperationResult[GraphView]:
    """Node/edge provenance view.  An unknown build yields an empty view."""
    timer = start_timer()
    if request.max_depth is not None and request.max_depth < 1:
        return invalid("max_depth must be at least 1", field="max_depth", elapsed_ms=timer.elapsed_ms)
    try:
        view = _assembler(ctx, request.max_depth).build_graph(request.build_id)
        return OperationResult.ok(view, warnings=_view_warnings(view.truncated), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="build_dependency_graph", elapsed_ms=timer.elapsed_ms)


def build_dependency_table(
    ctx: OperationContext,
    request: DependencyViewRequest,
) -> OperationResult[TableView]:
    """Flat provenance view.  An unknown build yields an empty view."""
    timer = start_timer()
    if request.max_depth is not None and request.max_depth < 1:
        return invalid("max_depth must be at least 1", field="max_depth", elapsed_ms=timer.elapsed_ms)
    try:
        view = _assembler(ctx, request.max_depth).build_table(request.build_id)
        return OperationResult.ok(view, warnings=_view_warnings(view.truncated), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="build_dependency_table", elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _unlocked_bom(repo: BomRepository, build_id: int) -> Bom:
    bom = repo.get_for_build(build_id)
    if bom is None:
        raise BomNotFoundError(build_id)
    if bom.locked:
        raise BomLockedError(build_id)
    return bom


def _check_scm_order(repo: BomRepository, table: str, build_id: int, scm_order: int) -> None:
    if repo.scm_order_taken(table, build_id, scm_order):
        raise _duplicate_scm_order(build_id, scm_order)


def _duplicate_scm_order(build_id: int, scm_order: int) -> DuplicateRecordError:
    return DuplicateRecordError(
        f"scm_order {scm_order} is already used by build record {build_id}"
    ).with_context(build_id=build_id, scm_order=scm_order)


def _duplicate_bom(build_id: int) -> DuplicateRecordError:
    return DuplicateRecordError(
        f"A BOM already exists for build record {build_id}"
    ).with_context(build_id=build_id)


def _view_warnings(truncated: bool) -> list[str]:
    return ["dependency tree truncated at the maximum depth"] if truncated else []


def _bom_detail(ctx: OperationContext, build_id: int) -> BomDetail:
    repo = _bom_repo(ctx)
    bom = repo.get_for_build(build_id)
    if bom is None:
        raise BomNotFoundError(build_id)
    return BomDetail(
        id=bom.id,
        build_id=bom.build_record_id,
        bom_type=bom.bom_type,
        build_system=bom.build_system,
        build_system_version=bom.build_system_version,
        external_reference_id=bom.external_reference_id,
        locked=bom.locked,
        internal_count=len(repo.internal_edges(build_id)),
        external_count=len(repo.external_edges(build_id)),
    )
