"""Base settings for buildtrack.

Configuration is explicit, validated, and environment-driven: every field
can be set through a ``BUILDTRACK_``-prefixed environment variable or a
``.env`` file. Transports (API, CLI) extend :class:`BuildTrackSettings`
with their own fields.

Examples:
    >>> settings = BuildTrackSettings(database_url="sqlite:///builds.db")
    >>> settings.dependency_max_depth
    10
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildTrackSettings(BaseSettings):
    """Common settings shared by the API, the CLI, and the ops layer.

    Fields
    ──────
    database_url          : ``sqlite:///path``, a bare file path, or ``memory``
    log_level             : Structlog log level
    log_json              : Force JSON (True) or console (False) logs; None = auto
    service_name          : ``service.name`` field on every log line
    dependency_max_depth  : Depth bound for provenance traversal
    notifier_url          : Webhook receiving milestone-change notifications
    notifier_timeout      : Seconds before a notification attempt is abandoned
    """

    model_config = SettingsConfigDict(
        env_prefix="BUILDTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_url: str = "sqlite:///buildtrack.db"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "buildtrack"

    # ── Provenance ───────────────────────────────────────────────
    dependency_max_depth: int = Field(default=10, ge=1, le=100)

    # ── Notification ─────────────────────────────────────────────
    notifier_url: str | None = None
    notifier_timeout: float = Field(default=10.0, gt=0)

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level: {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> BuildTrackSettings:
    """Return the cached process-wide settings."""
    return BuildTrackSettings()
