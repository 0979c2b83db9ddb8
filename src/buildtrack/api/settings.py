"""
Settings for the REST transport.

:class:`BuildTrackAPISettings` adds the HTTP bind address, URL prefix and
CORS origins to the shared :class:`~buildtrack.core.settings.BuildTrackSettings`
(database, logging, notifier, traversal depth).  Everything reads from
``BUILDTRACK_``-prefixed environment variables or ``.env``::

    BUILDTRACK_DATABASE_URL=sqlite:////var/lib/buildtrack/builds.db
    BUILDTRACK_PORT=8600
    BUILDTRACK_NOTIFIER_URL=https://cm.example.com/hooks/milestones
"""

from __future__ import annotations

from pydantic import Field, field_validator

from buildtrack.core.settings import BuildTrackSettings


class BuildTrackAPISettings(BuildTrackSettings):
    """Settings for ``buildtrack serve`` and :func:`buildtrack.api.create_app`."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8600, ge=1, le=65535, description="Bind port")
    debug: bool = Field(default=False, description="Expose exception text in 500 responses")

    api_prefix: str = Field(default="/api/v1", description="URL prefix of every non-health endpoint")
    api_title: str = Field(default="buildtrack API")
    api_version: str = Field(default="0.1.0")

    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("api_prefix")
    @classmethod
    def _normalise_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        return value if not value or value.startswith("/") else f"/{value}"
