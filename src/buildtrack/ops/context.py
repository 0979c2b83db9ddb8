"""
Request-scoped context for operations.

Each transport builds one :class:`OperationContext` per request: the API
from the ``X-User`` and ``X-Request-ID`` headers, the CLI from the login
name.  Operations read the connection, the default actor, the dry-run
flag and the milestone notifier from it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from buildtrack.core.notifier import MilestoneNotifier
from buildtrack.core.protocols import Connection


@dataclass
class OperationContext:
    """Context passed as the first argument of every operation.

    Attributes:
        conn: Connection used for every read and write of the request.
        request_id: Correlates log lines; generated when not supplied.
        caller: ``"api"``, ``"cli"`` or ``"sdk"``.
        user: Authenticated or local user name, the default transition actor.
        dry_run: Validate and preview mutations without writing.
        notifier: Receives milestone changes; ``None`` disables delivery.
    """

    conn: Connection
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    caller: str = "sdk"
    user: str | None = None
    dry_run: bool = False
    notifier: MilestoneNotifier | None = None

    def actor_for(self, requested: str | None) -> str:
        """The explicit actor if given, else the context user; blank when neither is set."""
        return (requested or self.user or "").strip()
