"""buildtrack core -- domain logic independent of any transport.

Manifesto:
    The only parts of the build tracker with real invariants live here:
    monotonic milestone progression with an append-only audit trail,
    provenance graph assembly over flat dependency rows, and insert-only
    quality gate versioning.  Everything else is request plumbing in
    ``buildtrack.ops`` and the transports.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          BuildTrackError hierarchy (codes + categories)
        models.py          Frozen records (Milestone, BuildRecord, ...)
        protocols.py       Connection protocol
        connection.py      create_connection() from a URL or path

    Layer 2 -- Storage
        dialect.py         SQL dialect abstraction
        repository.py      BaseRepository + transaction()
        repositories/      One repository per aggregate
        schema/            SQL DDL files
        schema_loader.py   apply_all_schemas()

    Layer 3 -- Domain
        milestones.py      can_progress() + MilestoneCatalog
        ledger.py          Append-only transition history
        transitions.py     MilestoneStateMachine
        notifier.py        Best-effort milestone notifications
        provenance.py      DependencyGraphAssembler
        quality_gates.py   QualityGateVersioning

    Cross-cutting
        logging.py         structlog configuration
        settings.py        pydantic-settings configuration
"""

from buildtrack.core.errors import (
    BuildNotFoundError,
    BuildTrackError,
    DuplicateActiveGateError,
    ErrorCategory,
    IllegalProgressionError,
    UnknownMilestoneError,
)
from buildtrack.core.milestones import MilestoneCatalog, can_progress
from buildtrack.core.models import BuildRecord, Milestone, MilestoneTransitionEvent

__all__ = [
    "BuildNotFoundError",
    "BuildRecord",
    "BuildTrackError",
    "DuplicateActiveGateError",
    "ErrorCategory",
    "IllegalProgressionError",
    "Milestone",
    "MilestoneCatalog",
    "MilestoneTransitionEvent",
    "UnknownMilestoneError",
    "can_progress",
]
