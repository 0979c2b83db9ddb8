"""Repositories for buildtrack tables.

Each repository class extends :class:`BaseRepository` and provides typed,
dialect-aware access for one aggregate.  Operations in ``buildtrack.ops``
and the core state machine use these instead of inline SQL.

Architecture::

    ┌────────────────────────────────────────────────────────────────┐
    │  ops/milestones.py, ops/builds.py, ops/dependencies.py, ...    │
    │  core/transitions.py, core/ledger.py, core/provenance.py       │
    └────────────────────────────┬───────────────────────────────────┘
                                 │ uses
                                 ▼
    ┌────────────────────────────────────────────────────────────────┐
    │  buildtrack.core.repositories  (this package)                  │
    │                                                                │
    │  milestones.py     - MilestoneRepository                       │
    │  builds.py         - BuildRepository                           │
    │  history.py        - MilestoneHistoryRepository                │
    │  steps.py          - BuildStepRepository                       │
    │  boms.py           - BomRepository                             │
    │  quality_gates.py  - QualityGateRepository                     │
    └────────────────────────────────────────────────────────────────┘
"""

from buildtrack.core.repositories.boms import BomRepository
from buildtrack.core.repositories.builds import BuildRepository
from buildtrack.core.repositories.history import MilestoneHistoryRepository
from buildtrack.core.repositories.milestones import MilestoneRepository
from buildtrack.core.repositories.quality_gates import QualityGateRepository
from buildtrack.core.repositories.steps import BuildStepRepository

__all__ = [
    "BomRepository",
    "BuildRepository",
    "BuildStepRepository",
    "MilestoneHistoryRepository",
    "MilestoneRepository",
    "QualityGateRepository",
]
