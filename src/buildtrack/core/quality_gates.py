"""
Quality gate versioning.

Gates are never edited in place.  Historical builds must be able to report
which thresholds were in force when they ran, so an update deactivates
every stored row for the name and inserts a new active row.

    create("CodeCov")  → row 1 active
    update("CodeCov")  → row 1 inactive, row 2 active
    update("CodeCov")  → rows 1-2 inactive, row 3 active
    list_active()      → [row 3]

Listing is an explicit max-by-identity reduction per case-insensitive
name.  Identities come from an ``AUTOINCREMENT`` column, which SQLite never
reuses, so the highest id is the most recently inserted row.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass

from buildtrack.core.errors import (
    ConstraintViolationError,
    DuplicateActiveGateError,
    QualityGateNotFoundError,
)
from buildtrack.core.logging import get_logger
from buildtrack.core.models import QualityGate, name_key
from buildtrack.core.protocols import Connection
from buildtrack.core.repositories import QualityGateRepository

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GateFields:
    """Configurable values of a gate version."""

    description: str | None = None
    gate_type: str = "threshold"
    pass_threshold: float | None = None
    fail_threshold: float | None = None
    min_value: float | None = None
    max_value: float | None = None


def latest_per_name(gates: Iterable[QualityGate]) -> list[QualityGate]:
    """Keep the highest-id gate for each name (case-insensitive), sorted by name."""
    latest: dict[str, QualityGate] = {}
    for gate in gates:
        key = name_key(gate.name)
        current = latest.get(key)
        if current is None or gate.id > current.id:
            latest[key] = gate
    return sorted(latest.values(), key=lambda g: name_key(g.name))


class QualityGateVersioning:
    """Create, supersede and list quality gate versions."""

    def __init__(self, conn: Connection) -> None:
        self._repo = QualityGateRepository(conn)

    def create(self, name: str, fields: GateFields) -> int:
        """Insert the first active version of *name*.

        Raises:
            DuplicateActiveGateError: an active row already exists for *name*.
        """
        name = name.strip()
        if self._repo.has_active(name):
            raise DuplicateActiveGateError(name)
        try:
            with self._repo.transaction():
                gate_id = self._repo.insert_version(name, asdict(fields))
        except ConstraintViolationError as exc:
            if not exc.unique:
                raise
            raise DuplicateActiveGateError(name, cause=exc) from exc
        logger.info("quality_gate.created", gate_name=name, gate_id=gate_id)
        return gate_id

    def update(self, name: str, fields: GateFields) -> int:
        """Deactivate every row for *name* and insert a new active one, atomically.

        Raises:
            QualityGateNotFoundError: no row has ever been stored for *name*.
        """
        name = name.strip()
        if self._repo.count_for_name(name) == 0:
            raise QualityGateNotFoundError(name)
        with self._repo.transaction():
            deactivated = self._repo.deactivate_all(name)
            gate_id = self._repo.insert_version(name, asdict(fields))
        logger.info(
            "quality_gate.superseded",
            gate_name=name,
            gate_id=gate_id,
            deactivated=deactivated,
        )
        return gate_id

    def list_active(self) -> list[QualityGate]:
        return latest_per_name(self._repo.list_active_rows())

    def versions(self, name: str) -> list[QualityGate]:
        """Every stored version of *name*, newest first."""
        return self._repo.list_versions(name.strip())


__all__ = ["GateFields", "QualityGateVersioning", "latest_per_name"]
