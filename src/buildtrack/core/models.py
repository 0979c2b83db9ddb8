"""
Immutable domain records.

Rows read from the store are converted into frozen dataclasses right at the
repository boundary. Decision functions (milestone validation, provenance
assembly, gate reduction) only ever see these snapshots; writes are explicit
repository calls.

Tags:
    buildtrack, domain, value-objects
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


def _as_bool(value: Any) -> bool:
    return bool(int(value)) if value is not None else False


def name_key(name: str) -> str:
    """Comparison form of a milestone or gate name.

    Stored alongside the display name so that uniqueness in the store and
    lookups in Python agree for non-ASCII names too.
    """
    return name.strip().casefold()


@dataclass(frozen=True, slots=True)
class Milestone:
    """A named stage in a build's lifecycle, ordered by ``level``."""

    id: int
    name: str
    level: int
    active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Milestone:
        return cls(
            id=row["id"],
            name=row["name"],
            level=row["level"],
            active=_as_bool(row["active"]),
        )


@dataclass(frozen=True, slots=True)
class BuildRecord:
    """One build invocation of a component.

    ``version`` is the optimistic-concurrency counter guarding
    ``milestone_id`` writes.
    """

    id: int
    component_id: str
    build_number: str
    branch: str
    milestone_id: int
    build_result: str | None = None
    build_comment: str | None = None
    artifact_url: str | None = None
    code_coverage: float | None = None
    version: int = 0
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> BuildRecord:
        return cls(
            id=row["id"],
            component_id=row["component_id"],
            build_number=row["build_number"],
            branch=row["branch"],
            milestone_id=row["milestone_id"],
            build_result=row.get("build_result"),
            build_comment=row.get("build_comment"),
            artifact_url=row.get("artifact_url"),
            code_coverage=row.get("code_coverage"),
            version=row.get("version") or 0,
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True, slots=True)
class BuildStep:
    """Outcome of one named step (compile, unit-tests, ...) of a build."""

    id: int
    build_record_id: int
    step_name: str
    step_result: str
    recorded_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> BuildStep:
        return cls(
            id=row["id"],
            build_record_id=row["build_record_id"],
            step_name=row["step_name"],
            step_result=row["step_result"],
            recorded_at=row["recorded_at"],
        )


@dataclass(frozen=True, slots=True)
class MilestoneTransitionEvent:
    """One immutable entry of a build's milestone audit trail."""

    id: int
    build_record_id: int
    previous_milestone_id: int
    new_milestone_id: int
    actor: str
    comment: str
    recorded_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> MilestoneTransitionEvent:
        recorded = row["recorded_at"]
        if isinstance(recorded, str):
            recorded = datetime.fromisoformat(recorded)
        return cls(
            id=row["id"],
            build_record_id=row["build_record_id"],
            previous_milestone_id=row["previous_milestone_id"],
            new_milestone_id=row["new_milestone_id"],
            actor=row["actor"],
            comment=row["comment"] or "",
            recorded_at=recorded,
        )


@dataclass(frozen=True, slots=True)
class Bom:
    """Bill of materials header for one build record."""

    id: int
    build_record_id: int
    bom_type: str
    build_system: str | None = None
    build_system_version: str | None = None
    external_reference_id: str | None = None
    locked: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Bom:
        return cls(
            id=row["id"],
            build_record_id=row["build_record_id"],
            bom_type=row["bom_type"],
            build_system=row.get("build_system"),
            build_system_version=row.get("build_system_version"),
            external_reference_id=row.get("external_reference_id"),
            locked=_as_bool(row.get("locked")),
        )


class DependencyKind(str, Enum):
    """Which relation a dependency edge came from."""

    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True, slots=True)
class InternalDependency:
    """Edge from a build record to another build record it incorporates."""

    id: int
    build_record_id: int
    dependency_build_record_id: int
    scm_order: int
    bom_type: str

    kind = DependencyKind.INTERNAL

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> InternalDependency:
        return cls(
            id=row["id"],
            build_record_id=row["build_record_id"],
            dependency_build_record_id=row["dependency_build_record_id"],
            scm_order=row["scm_order"],
            bom_type=row["bom_type"],
        )


@dataclass(frozen=True, slots=True)
class ExternalDependency:
    """Edge from a build record to a package outside this system."""

    id: int
    build_record_id: int
    project_name: str
    scm_order: int
    bom_type: str
    master_id: str | None = None
    build_number: str | None = None
    package_number: str | None = None
    version: str | None = None

    kind = DependencyKind.EXTERNAL

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ExternalDependency:
        return cls(
            id=row["id"],
            build_record_id=row["build_record_id"],
            project_name=row["project_name"],
            scm_order=row["scm_order"],
            bom_type=row["bom_type"],
            master_id=row.get("master_id"),
            build_number=row.get("build_number"),
            package_number=row.get("package_number"),
            version=row.get("version"),
        )


DependencyEdge = InternalDependency | ExternalDependency


@dataclass(frozen=True, slots=True)
class QualityGate:
    """One stored version of a quality gate configuration."""

    id: int
    name: str
    gate_type: str
    active: bool
    description: str | None = None
    pass_threshold: float | None = None
    fail_threshold: float | None = None
    min_value: float | None = None
    max_value: float | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> QualityGate:
        return cls(
            id=row["id"],
            name=row["name"],
            gate_type=row["gate_type"],
            active=_as_bool(row["active"]),
            description=row.get("description"),
            pass_threshold=row.get("pass_threshold"),
            fail_threshold=row.get("fail_threshold"),
            min_value=row.get("min_value"),
            max_value=row.get("max_value"),
            created_at=row.get("created_at"),
        )


__all__ = [
    "Milestone",
    "BuildRecord",
    "BuildStep",
    "MilestoneTransitionEvent",
    "Bom",
    "DependencyKind",
    "InternalDependency",
    "ExternalDependency",
    "DependencyEdge",
    "QualityGate",
    "name_key",
]
