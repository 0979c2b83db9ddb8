"""
Error responses: ops error codes to RFC 7807 problem documents.

A failed :class:`~buildtrack.ops.result.OperationResult` keeps its code in
the ``errors`` list so clients can branch on ``ILLEGAL_PROGRESSION`` versus
``UNKNOWN_MILESTONE`` without parsing the title.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from buildtrack.api.schemas.common import ErrorDetail, ProblemDetail
from buildtrack.core.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_STATUS: dict[str, int] = {
    # caller sent something unusable
    "VALIDATION_FAILED": 400,
    "UNKNOWN_MILESTONE": 400,
    # addressed object does not exist
    "NOT_FOUND": 404,
    "BUILD_NOT_FOUND": 404,
    # request contradicts current state
    "ILLEGAL_PROGRESSION": 409,
    "DUPLICATE_ACTIVE_GATE": 409,
    "CONFLICT": 409,
    "LOCKED": 423,
    # server side
    "STORE_FAILURE": 500,
    "CONFIG_INVALID": 500,
}


def status_for_error_code(code: str) -> int:
    return ERROR_CODE_TO_STATUS.get(code, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        errors=[ErrorDetail(**e) for e in errors or ()],
    )
    return JSONResponse(status_code=status, content=body.model_dump())


def problem_from_result(result: Any, *, instance: str = "") -> JSONResponse:
    """Problem response for a failed operation result."""
    error = result.error
    if error is None:
        return problem_response(status=500, title="Operation failed", instance=instance)
    return problem_response(
        status=status_for_error_code(error.code),
        title=error.message,
        detail=", ".join(f"{k}={v}" for k, v in error.details.items()),
        instance=instance,
        errors=[{"code": error.code, "message": error.message, "field": error.details.get("field")}],
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything that escaped a router; the message is shown only in debug mode."""
    logger.critical("api.unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    debug = request.app.state.settings.debug
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if debug else "An unexpected error occurred.",
        instance=request.url.path,
    )
