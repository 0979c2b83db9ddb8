"""
FastAPI application factory.

``create_app()`` is the only place that wires the REST transport together:
settings, request correlation, CORS, the catch-all error handler and the
routers.  Routers stay thin adapters over :mod:`buildtrack.ops`.

Layout::

    /health, /health/live              liveness checks (no prefix)
    {prefix}/database/init             schema + optional milestone seeding
    {prefix}/milestones[...]           milestone catalog
    {prefix}/builds[...]               build records and transitions
    {prefix}/builds/{id}/bom[...]      bill of materials
    {prefix}/builds/{id}/dependencies  provenance views
    {prefix}/quality-gates[...]        gate versions
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from buildtrack.api.deps import get_settings
from buildtrack.api.middleware.errors import unhandled_exception_handler
from buildtrack.api.middleware.request_id import RequestIDMiddleware
from buildtrack.api.settings import BuildTrackAPISettings
from buildtrack.core.connection import create_connection
from buildtrack.core.logging import configure_logging, get_logger
from buildtrack.ops.context import OperationContext
from buildtrack.ops.database import initialize_database

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and make sure the schema exists before serving."""
    settings: BuildTrackAPISettings = app.state.settings
    configure_logging(level=settings.log_level, json_format=settings.log_json, service=settings.service_name)

    conn, info = create_connection(settings.database_url)
    with conn:
        result = initialize_database(OperationContext(conn=conn, caller="api"))
    if result.success:
        logger.info("api.started", version=app.version, database=info.url, persistent=info.persistent)
    else:
        logger.error("api.schema_failed", database=info.url, error=result.error.message)

    yield
    logger.info("api.stopped")


def create_app(*, settings: BuildTrackAPISettings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    ----------
    settings : BuildTrackAPISettings | None
        Explicit settings, mainly for tests.  Defaults to the cached
        environment settings.
    """
    from buildtrack.api.routers import bom, builds, database, health, milestones, quality

    settings = settings or get_settings()
    prefix = settings.api_prefix

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{prefix}/docs",
        openapi_url=f"{prefix}/openapi.json",
        redoc_url=None,
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router, tags=["health"])
    for module, tag in (
        (database, "database"),
        (milestones, "milestones"),
        (builds, "builds"),
        (bom, "bom"),
        (quality, "quality-gates"),
    ):
        app.include_router(module.router, prefix=prefix, tags=[tag])

    return app
