"""
Quality gate operations.

Wraps :class:`buildtrack.core.quality_gates.QualityGateVersioning`.  Gates
are created once per name, superseded by insert on every update, and
listed as the latest active row per name.
"""

from __future__ import annotations

from buildtrack.core.errors import DuplicateActiveGateError, QualityGateNotFoundError
from buildtrack.core.logging import get_logger
from buildtrack.core.models import QualityGate
from buildtrack.core.quality_gates import GateFields, QualityGateVersioning
from buildtrack.core.repositories import QualityGateRepository
from buildtrack.ops.context import OperationContext
from buildtrack.ops.failures import fail_from_exception, invalid
from buildtrack.ops.requests import QualityGateRequest
from buildtrack.ops.responses import QualityGateSummary
from buildtrack.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def _versioning(ctx: OperationContext) -> QualityGateVersioning:
    return QualityGateVersioning(ctx.conn)


def create_quality_gate(
    ctx: OperationContext,
    request: QualityGateRequest,
) -> OperationResult[int]:
    """Create a gate.  Fails with ``DUPLICATE_ACTIVE_GATE`` if the name is active."""
    timer = start_timer()
    error = _validate(request)
    if error:
        return invalid(error, elapsed_ms=timer.elapsed_ms)

    try:
        if ctx.dry_run:
            if QualityGateRepository(ctx.conn).has_active(request.name.strip()):
                raise DuplicateActiveGateError(request.name.strip())
            return OperationResult.ok(0, elapsed_ms=timer.elapsed_ms)
        gate_id = _versioning(ctx).create(request.name, _fields(request))
        return OperationResult.ok(gate_id, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="create_quality_gate", elapsed_ms=timer.elapsed_ms)


def update_quality_gate(
    ctx: OperationContext,
    request: QualityGateRequest,
) -> OperationResult[int]:
    """Supersede every stored row of a gate with a new active row.

    Fails with ``NOT_FOUND`` when the name has never been stored.
    """
    timer = start_timer()
    error = _validate(request)
    if error:
        return invalid(error, elapsed_ms=timer.elapsed_ms)

    try:
        if ctx.dry_run:
            if QualityGateRepository(ctx.conn).count_for_name(request.name.strip()) == 0:
                raise QualityGateNotFoundError(request.name.strip())
            return OperationResult.ok(0, elapsed_ms=timer.elapsed_ms)
        gate_id = _versioning(ctx).update(request.name, _fields(request))
        return OperationResult.ok(gate_id, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(exc, operation="update_quality_gate", elapsed_ms=timer.elapsed_ms)


def list_active_quality_gates(ctx: OperationContext) -> OperationResult[list[QualityGateSummary]]:
    """The latest active row of every gate, sorted by name."""
    timer = start_timer()
    try:
        gates = _versioning(ctx).list_active()
        return OperationResult.ok([_to_summary(g) for g in gates], elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(
            exc, operation="list_active_quality_gates", elapsed_ms=timer.elapsed_ms
        )


def list_quality_gate_versions(
    ctx: OperationContext,
    name: str,
) -> OperationResult[list[QualityGateSummary]]:
    """Every stored version of one gate, newest first."""
    timer = start_timer()
    try:
        gates = _versioning(ctx).versions(name)
        if not gates:
            raise QualityGateNotFoundError(name)
        return OperationResult.ok([_to_summary(g) for g in gates], elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return fail_from_exception(
            exc, operation="list_quality_gate_versions", elapsed_ms=timer.elapsed_ms
        )


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _validate(request: QualityGateRequest) -> str | None:
    if not request.name.strip():
        return "name is required"
    if (
        request.min_value is not None
        and request.max_value is not None
        and request.min_value > request.max_value
    ):
        return "min_value must not exceed max_value"
    return None


def _fields(request: QualityGateRequest) -> GateFields:
    return GateFields(
        description=request.description,
        gate_type=request.gate_type,
        pass_threshold=request.pass_threshold,
        fail_threshold=request.fail_threshold,
        min_value=request.min_value,
        max_value=request.max_value,
    )


def _to_summary(gate: QualityGate) -> QualityGateSummary:
    return QualityGateSummary(
        id=gate.id,
        name=gate.name,
        gate_type=gate.gate_type,
        active=gate.active,
        description=gate.description,
        pass_threshold=gate.pass_threshold,
        fail_threshold=gate.fail_threshold,
        min_value=gate.min_value,
        max_value=gate.max_value,
        created_at=gate.created_at,
    )
