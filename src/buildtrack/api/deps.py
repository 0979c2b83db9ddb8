"""
FastAPI dependencies.

Each request gets its own connection (closed when the response is sent)
and an :class:`OperationContext` whose default actor is the ``X-User``
header.  Routers declare what they need with the aliases at the bottom::

    @router.post("/{build_id}/milestone")
    def apply_transition(ctx: OpContext, build_id: int, body: TransitionBody): ...
"""

from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from buildtrack.api.settings import BuildTrackAPISettings
from buildtrack.core.connection import create_connection
from buildtrack.core.notifier import create_notifier
from buildtrack.core.protocols import Connection
from buildtrack.ops.context import OperationContext


@lru_cache(maxsize=1)
def get_settings() -> BuildTrackAPISettings:
    return BuildTrackAPISettings()


def get_connection(
    settings: Annotated[BuildTrackAPISettings, Depends(get_settings)],
) -> Iterator[Connection]:
    conn, _info = create_connection(settings.database_url)
    with conn:
        yield conn


def get_operation_context(
    request: Request,
    conn: Annotated[Connection, Depends(get_connection)],
    settings: Annotated[BuildTrackAPISettings, Depends(get_settings)],
) -> OperationContext:
    ctx = OperationContext(
        conn=conn,
        caller="api",
        user=request.headers.get("X-User"),
        notifier=create_notifier(settings.notifier_url, timeout=settings.notifier_timeout),
    )
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        ctx.request_id = request_id
    return ctx


Settings = Annotated[BuildTrackAPISettings, Depends(get_settings)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
