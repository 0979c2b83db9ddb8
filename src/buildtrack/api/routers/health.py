"""
Health router: container liveness and readiness.

GET /health        Service status with a database round-trip
GET /health/live   Process is up (no dependency checks)

Mounted at the root, outside the API prefix, for container healthchecks.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from buildtrack.api.deps import Settings
from buildtrack.core.connection import create_connection
from buildtrack.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health")


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    service: str
    version: str
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    database: str = Field(default="ok", description="'ok' or the connection error")
    latency_ms: float = 0.0


class LivenessResponse(BaseModel):
    status: Literal["alive"] = "alive"


@router.get("", response_model=HealthResponse)
def health(settings: Settings) -> JSONResponse:
    """Open the database and run ``SELECT 1``; 503 when it fails."""
    start = time.perf_counter()
    database = "ok"
    try:
        conn, _info = create_connection(settings.database_url)
        with conn:
            conn.execute("SELECT 1")
            conn.fetchone()
    except Exception as exc:
        logger.warning("health.database_unreachable", error=str(exc))
        database = str(exc)

    body = HealthResponse(
        status="healthy" if database == "ok" else "unhealthy",
        service=settings.service_name,
        version=settings.api_version,
        database=database,
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return JSONResponse(status_code=200 if database == "ok" else 503, content=body.model_dump())


@router.get("/live", response_model=LivenessResponse)
def liveness() -> LivenessResponse:
    return LivenessResponse()
