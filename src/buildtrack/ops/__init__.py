"""
Operations layer -- transport-agnostic business functions for buildtrack.

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- No HTTP or CLI knowledge
- Mutating functions honour ``ctx.dry_run``

Usage::

    from buildtrack.ops import OperationContext, SqliteConnection
    from buildtrack.ops.database import initialize_database
    from buildtrack.ops.milestones import apply_transition
    from buildtrack.ops.requests import ApplyTransitionRequest

    ctx = OperationContext(conn=SqliteConnection("builds.db"), user="alice")
    initialize_database(ctx)
    result = apply_transition(ctx, ApplyTransitionRequest(build_id=7, milestone="QA"))
"""

from buildtrack.ops.context import OperationContext
from buildtrack.ops.result import OperationError, OperationResult
from buildtrack.ops.sqlite_conn import SqliteConnection

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
    "SqliteConnection",
]
