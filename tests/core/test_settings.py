"""Tests for BuildTrackSettings and connection URL handling."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from buildtrack.core.connection import create_connection
from buildtrack.core.errors import ConfigError
from buildtrack.core.settings import BuildTrackSettings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BUILDTRACK_DATABASE_URL", raising=False)
        settings = BuildTrackSettings(_env_file=None)
        assert settings.database_url == "sqlite:///buildtrack.db"
        assert settings.dependency_max_depth == 10
        assert settings.notifier_url is None

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("BUILDTRACK_DEPENDENCY_MAX_DEPTH", "4")
        monkeypatch.setenv("BUILDTRACK_LOG_LEVEL", "debug")
        settings = BuildTrackSettings(_env_file=None)
        assert settings.dependency_max_depth == 4
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            BuildTrackSettings(_env_file=None, log_level="LOUD")

    def test_depth_bounds(self):
        with pytest.raises(ValidationError):
            BuildTrackSettings(_env_file=None, dependency_max_depth=0)


class TestCreateConnection:
    def test_memory(self):
        conn, info = create_connection(":memory:")
        assert info.persistent is False
        conn.close()

    def test_sqlite_url_creates_parent(self, tmp_path):
        path = tmp_path / "nested" / "bt.db"
        conn, info = create_connection(f"sqlite:///{path}")
        assert info.backend == "sqlite"
        assert info.persistent is True
        assert path.parent.is_dir()
        conn.close()

    def test_unsupported_scheme(self):
        with pytest.raises(ConfigError):
            create_connection("postgresql://localhost/bt")
