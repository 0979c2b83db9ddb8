"""
buildtrack - build milestone tracking and dependency provenance.

Subpackages:
- buildtrack.core: domain records, milestone state machine, provenance
  assembly, quality gate versioning, repositories
- buildtrack.ops: transport-agnostic operations returning OperationResult
- buildtrack.api: FastAPI application
- buildtrack.cli: Typer command line
"""

__version__ = "0.1.0"
