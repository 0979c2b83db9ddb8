"""
Domain schemas: request bodies and typed payloads for each router.

Payload schemas mirror :mod:`buildtrack.ops.responses`; request bodies
are converted into :mod:`buildtrack.ops.requests` dataclasses by the
routers.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# ── Database ─────────────────────────────────────────────────────────────


class DatabaseInitSchema(BaseModel):
    """Result of a schema initialisation."""

    tables_created: list[str] = Field(default_factory=list, description="Tables present after init")
    milestones_seeded: int = Field(default=0, description="Default milestones inserted")
    dry_run: bool = Field(default=False, description="True if nothing was written")


class DatabaseInitBody(BaseModel):
    seed_milestones: bool = Field(default=False, description="Seed Dev/QA/Staging/Release when empty")


# ── Milestones ───────────────────────────────────────────────────────────


class MilestoneSchema(BaseModel):
    """One configured milestone."""

    id: int = Field(description="Milestone identity")
    name: str = Field(description="Display name, unique ignoring case")
    level: int = Field(description="Ordering level; builds only move to equal or higher levels")
    active: bool = Field(default=True, description="Inactive milestones cannot be targeted")


class DefineMilestoneBody(BaseModel):
    name: str = Field(description="Display name")
    level: int = Field(description="Ordering level")
    active: bool = Field(default=True)


class TransitionBody(BaseModel):
    """Body of ``POST /builds/{id}/milestone``."""

    milestone: str = Field(description="Target milestone name (case-insensitive)")
    actor: str | None = Field(default=None, description="Who requests the change; defaults to X-User")
    comment: str = Field(default="", description="Free text stored on the history event")


class TransitionSchema(BaseModel):
    build_id: int
    previous_milestone: str
    milestone: str
    event_id: int | None = None
    recorded_at: str | None = None
    notified: bool = False
    dry_run: bool = False


class HistoryEntrySchema(BaseModel):
    """One milestone transition event."""

    id: int
    build_id: int
    previous_milestone_id: int
    previous_milestone: str | None = None
    new_milestone_id: int
    new_milestone: str | None = None
    actor: str
    comment: str = ""
    recorded_at: str


# ── Builds ───────────────────────────────────────────────────────────────


class BuildSchema(BaseModel):
    """A build record with its current milestone name."""

    id: int
    component_id: str
    build_number: str
    branch: str
    milestone_id: int
    milestone: str | None = None
    build_result: str | None = None
    build_comment: str | None = None
    artifact_url: str | None = None
    code_coverage: float | None = None
    created_at: str | None = None


class RegisterBuildBody(BaseModel):
    component_id: str = Field(description="Opaque component key")
    build_number: str = Field(description="Build number within the component")
    branch: str = Field(description="Source branch")
    milestone: str = Field(description="Initial milestone name")
    artifact_url: str | None = Field(default=None)


class BuildResultBody(BaseModel):
    result: str = Field(description="Outcome label, e.g. 'success' or 'failed'")
    comment: str = Field(default="")


class ArtifactUrlBody(BaseModel):
    artifact_url: str


class CodeCoverageBody(BaseModel):
    coverage: float = Field(description="Percentage between 0 and 100")


class BuildStepBody(BaseModel):
    step_name: str = Field(description="Step name, e.g. 'compile' or 'unit-tests'")
    step_result: str = Field(description="Outcome label of the step")


class BuildStepSchema(BaseModel):
    id: int
    build_id: int
    step_name: str
    step_result: str
    recorded_at: str
    created: bool = False


class BuildSummarySchema(BaseModel):
    """Build record plus its steps, BOM edge counts and transition count."""

    build: BuildSchema
    steps: list[BuildStepSchema] = Field(default_factory=list)
    step_results: dict[str, int] = Field(default_factory=dict)
    has_bom: bool = False
    bom_locked: bool = False
    internal_count: int = 0
    external_count: int = 0
    transition_count: int = 0
    last_transition_at: str | None = None


# ── BOM & dependencies ───────────────────────────────────────────────────


class BomSchema(BaseModel):
    """Bill of materials header with edge counts."""

    id: int
    build_id: int
    bom_type: str
    build_system: str | None = None
    build_system_version: str | None = None
    external_reference_id: str | None = None
    locked: bool = False
    internal_count: int = 0
    external_count: int = 0


class CreateBomBody(BaseModel):
    bom_type: str = Field(default="default")
    build_system: str | None = None
    build_system_version: str | None = None
    external_reference_id: str | None = Field(
        default=None, description="Key of the build in the external notification system"
    )


class ExternalReferenceBody(BaseModel):
    external_reference_id: str


class InternalDependencyBody(BaseModel):
    dependency_build_id: int = Field(description="Build record this build incorporates")
    scm_order: int = Field(description="Position in the source manifest")
    bom_type: str | None = None


class ExternalDependencyBody(BaseModel):
    project_name: str = Field(description="Package or project outside the system")
    scm_order: int = Field(description="Position in the source manifest")
    version: str | None = None
    build_number: str | None = None
    package_number: str | None = None
    master_id: str | None = None
    bom_type: str | None = None


# ── Quality gates ────────────────────────────────────────────────────────


class QualityGateSchema(BaseModel):
    """One stored gate version."""

    id: int
    name: str
    gate_type: str
    active: bool = True
    description: str | None = None
    pass_threshold: float | None = None
    fail_threshold: float | None = None
    min_value: float | None = None
    max_value: float | None = None
    created_at: str | None = None


class QualityGateBody(BaseModel):
    """Configurable values of a gate version."""

    description: str | None = None
    gate_type: str = Field(default="threshold")
    pass_threshold: float | None = None
    fail_threshold: float | None = None
    min_value: float | None = None
    max_value: float | None = None


class CreateQualityGateBody(QualityGateBody):
    name: str = Field(description="Gate name, unique among active gates ignoring case")


class GateVersionSchema(BaseModel):
    id: int = Field(description="Identity of the inserted gate version")
    name: str
