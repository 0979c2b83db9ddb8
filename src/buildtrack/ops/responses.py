"""
Typed response objects for operations.

Each dataclass is the *output* contract returned inside
``OperationResult.data``.  The API converts them with ``dataclasses.asdict``
and the CLI renders them as tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ------------------------------------------------------------------ #
# Database
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DatabaseInitResult:
    tables_created: list[str] = field(default_factory=list)
    milestones_seeded: int = 0
    dry_run: bool = False


# ------------------------------------------------------------------ #
# Milestones
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class MilestoneSummary:
    id: int = 0
    name: str = ""
    level: int = 0
    active: bool = True


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Outcome of :func:`buildtrack.ops.milestones.apply_transition`.

    ``notified`` is ``False`` when no notification was sent or delivery
    failed; the transition itself stands either way.
    """

    build_id: int = 0
    previous_milestone: str = ""
    milestone: str = ""
    event_id: int | None = None
    recorded_at: str | None = None
    notified: bool = False
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    id: int = 0
    build_id: int = 0
    previous_milestone_id: int = 0
    previous_milestone: str | None = None
    new_milestone_id: int = 0
    new_milestone: str | None = None
    actor: str = ""
    comment: str = ""
    recorded_at: str = ""


# ------------------------------------------------------------------ #
# Builds
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class BuildDetail:
    id: int = 0
    component_id: str = ""
    build_number: str = ""
    branch: str = ""
    milestone_id: int = 0
    milestone: str | None = None
    build_result: str | None = None
    build_comment: str | None = None
    artifact_url: str | None = None
    code_coverage: float | None = None
    created_at: str | None = None


@dataclass(frozen=True, slots=True)
class BuildStepDetail:
    id: int = 0
    build_id: int = 0
    step_name: str = ""
    step_result: str = ""
    recorded_at: str = ""
    created: bool = False


@dataclass(frozen=True, slots=True)
class BuildSummary:
    """One-page report on a build: record, steps, BOM and milestone trail.

    ``step_results`` counts steps per result value.  The BOM fields are
    zero or ``False`` when the build has no BOM.
    """

    build: BuildDetail = field(default_factory=BuildDetail)
    steps: list[BuildStepDetail] = field(default_factory=list)
    step_results: dict[str, int] = field(default_factory=dict)
    has_bom: bool = False
    bom_locked: bool = False
    internal_count: int = 0
    external_count: int = 0
    transition_count: int = 0
    last_transition_at: str | None = None


# ------------------------------------------------------------------ #
# BOM
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class BomDetail:
    id: int = 0
    build_id: int = 0
    bom_type: str = ""
    build_system: str | None = None
    build_system_version: str | None = None
    external_reference_id: str | None = None
    locked: bool = False
    internal_count: int = 0
    external_count: int = 0


# ------------------------------------------------------------------ #
# Quality gates
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class QualityGateSummary:
    id: int = 0
    name: str = ""
    gate_type: str = ""
    active: bool = True
    description: str | None = None
    pass_threshold: float | None = None
    fail_threshold: float | None = None
    min_value: float | None = None
    max_value: float | None = None
    created_at: str | None = None
