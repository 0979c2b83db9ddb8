"""Tests for logging configuration and request-scoped context."""

from __future__ import annotations

import json

import pytest
import structlog

from buildtrack.core.logging import LogContext, configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def _last_json_line(err: str) -> dict:
    return json.loads(err.strip().splitlines()[-1])


class TestConfigureLogging:
    def test_json_lines_on_stderr(self, capsys):
        configure_logging(level="INFO", json_format=True, service="buildtrack-test")
        get_logger("tests").info("milestone.transition_applied", build_id=7)

        captured = capsys.readouterr()
        assert captured.out == ""
        record = _last_json_line(captured.err)
        assert record["event"] == "milestone.transition_applied"
        assert record["build_id"] == 7
        assert record["log.level"] == "info"
        assert record["service.name"] == "buildtrack-test"
        assert "@timestamp" in record

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        log = get_logger("tests")
        log.info("hidden")
        log.warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert _last_json_line(err)["event"] == "shown"

    def test_non_tty_defaults_to_json(self, capsys):
        configure_logging()
        get_logger("tests").info("ping")
        assert _last_json_line(capsys.readouterr().err)["event"] == "ping"

    def test_unknown_level(self):
        with pytest.raises(AttributeError):
            configure_logging(level="CHATTY")


class TestLogContext:
    def test_binds_inside_block_only(self):
        with LogContext(request_id="abc123"):
            assert structlog.contextvars.get_contextvars()["request_id"] == "abc123"
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_nested_restores_outer_value(self):
        with LogContext(user="alice"):
            with LogContext(user="bob"):
                assert structlog.contextvars.get_contextvars()["user"] == "bob"
            assert structlog.contextvars.get_contextvars()["user"] == "alice"

    def test_context_appears_in_output(self, capsys):
        configure_logging(json_format=True)
        with LogContext(request_id="r-1"):
            get_logger("tests").info("api.request")
        assert _last_json_line(capsys.readouterr().err)["request_id"] == "r-1"
