"""
Typed request objects for operations.

Each dataclass is the *input* contract for one operation function.
Requests carry only transport-agnostic data: no HTTP bodies, no CLI
params.
"""

from __future__ import annotations

from dataclasses import dataclass

# ------------------------------------------------------------------ #
# Database
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DatabaseInitRequest:
    """Request for :func:`buildtrack.ops.database.initialize_database`.

    ``seed_milestones`` inserts the default Dev/QA/Staging/Release lattice
    when the catalog is empty.
    """

    seed_milestones: bool = False


# ------------------------------------------------------------------ #
# Milestones
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListMilestonesRequest:
    include_inactive: bool = False


@dataclass(frozen=True, slots=True)
class DefineMilestoneRequest:
    """Request for :func:`buildtrack.ops.milestones.define_milestone`."""

    name: str = ""
    level: int = 0
    active: bool = True


@dataclass(frozen=True, slots=True)
class ApplyTransitionRequest:
    """Request for :func:`buildtrack.ops.milestones.apply_transition`.

    Attributes:
        build_id: Build record to move.
        milestone: Target milestone name (case-insensitive).
        actor: Who requested the change.  Falls back to ``ctx.user``.
        comment: Free text stored on the history event.
    """

    build_id: int = 0
    milestone: str = ""
    actor: str | None = None
    comment: str = ""


# ------------------------------------------------------------------ #
# Builds
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class RegisterBuildRequest:
    """Request for :func:`buildtrack.ops.builds.register_build`.

    ``component_id`` is the opaque key of the component in the external
    taxonomy.
    """

    component_id: str = ""
    build_number: str = ""
    branch: str = ""
    milestone: str = ""
    artifact_url: str | None = None


@dataclass(frozen=True, slots=True)
class RecordBuildResultRequest:
    build_id: int = 0
    result: str = ""
    comment: str = ""


@dataclass(frozen=True, slots=True)
class SetArtifactUrlRequest:
    build_id: int = 0
    artifact_url: str = ""


@dataclass(frozen=True, slots=True)
class SetCodeCoverageRequest:
    build_id: int = 0
    coverage: float = 0.0


@dataclass(frozen=True, slots=True)
class FindLatestBuildRequest:
    """Request for :func:`buildtrack.ops.builds.find_latest_build`.

    With ``exact`` the build must sit exactly at ``milestone``; otherwise
    any milestone at or above it qualifies and the highest one wins.
    """

    component_id: str = ""
    milestone: str = ""
    exact: bool = False


@dataclass(frozen=True, slots=True)
class ListBuildsRequest:
    """Newest builds of one component, at most ``limit`` of them."""

    component_id: str = ""
    limit: int = 50


@dataclass(frozen=True, slots=True)
class RecordBuildStepRequest:
    """Request for :func:`buildtrack.ops.builds.record_build_step`.

    A step is keyed by ``(build_id, step_name)``; recording the same step
    again replaces its result.
    """

    build_id: int = 0
    step_name: str = ""
    step_result: str = ""


# ------------------------------------------------------------------ #
# BOM & dependencies
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class CreateBomRequest:
    build_id: int = 0
    bom_type: str = "default"
    build_system: str | None = None
    build_system_version: str | None = None
    external_reference_id: str | None = None


@dataclass(frozen=True, slots=True)
class SetExternalReferenceRequest:
    build_id: int = 0
    external_reference_id: str = ""


@dataclass(frozen=True, slots=True)
class AddInternalDependencyRequest:
    """Record that ``build_id`` incorporates ``dependency_build_id``."""

    build_id: int = 0
    dependency_build_id: int = 0
    scm_order: int = 0
    bom_type: str | None = None


@dataclass(frozen=True, slots=True)
class AddExternalDependencyRequest:
    """Record that ``build_id`` incorporates a package from outside the system."""

    build_id: int = 0
    project_name: str = ""
    scm_order: int = 0
    version: str | None = None
    build_number: str | None = None
    package_number: str | None = None
    master_id: str | None = None
    bom_type: str | None = None


@dataclass(frozen=True, slots=True)
class DependencyViewRequest:
    """Request for the graph and table provenance views.

    ``max_depth`` of ``None`` uses the configured default.
    """

    build_id: int = 0
    max_depth: int | None = None


# ------------------------------------------------------------------ #
# Quality gates
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class QualityGateRequest:
    """Request for creating or superseding a quality gate."""

    name: str = ""
    description: str | None = None
    gate_type: str = "threshold"
    pass_threshold: float | None = None
    fail_threshold: float | None = None
    min_value: float | None = None
    max_value: float | None = None
