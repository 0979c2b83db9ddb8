"""
Structured logging for buildtrack.

All modules obtain a logger with :func:`get_logger` and log event-style
messages with key/value context::

    logger = get_logger(__name__)
    logger.info("milestone.transition_applied", build_id=7, milestone="QA")

:func:`configure_logging` is called once at startup by the API lifespan or
the CLI callback. Logs go to stderr; stdout carries CLI data only.
JSON output is used when stderr is not a tty, colored console output
otherwise.

Severity convention:
    - ``error``: a request was rejected for a reason the caller caused
      (unknown milestone, illegal progression, duplicate gate)
    - ``critical``: the store failed underneath a request
    - ``warning``: best-effort work failed (milestone notification)
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service_name = "buildtrack"


def _service(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _ecs_field_names(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """``timestamp``/``level`` become ``@timestamp``/``log.level`` for Elasticsearch."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "buildtrack",
) -> None:
    """Configure structlog (and the stdlib root logger) for the process.

    Args:
        level: Minimum level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        json_format: ``True`` for JSON lines, ``False`` for the colored
            console renderer, ``None`` to decide by whether stderr is a tty.
        service: Value of the ``service.name`` field.
    """
    global _service_name
    _service_name = service
    numeric_level = getattr(logging, level.upper())
    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.dev.set_exc_info,
        _service,
    ]
    if json_format:
        processors += [_ecs_field_names, structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level, force=True)


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def LogContext(**values: Any) -> AbstractContextManager[None]:  # noqa: N802
    """Bind *values* to every log line emitted inside the ``with`` block.

    Previously bound values for the same keys are restored on exit::

        with LogContext(request_id="abc123", user="alice"):
            logger.info("milestone.transition_applied", build_id=7)
    """
    return structlog.contextvars.bound_contextvars(**values)


__all__ = ["LogContext", "configure_logging", "get_logger"]
