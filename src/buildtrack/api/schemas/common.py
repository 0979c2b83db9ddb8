"""
Response envelopes shared by every endpoint.

Success (200/201) bodies are ``SuccessResponse[T]``::

    {"data": {...}, "elapsed_ms": 1.8, "warnings": []}

Failure (4xx/5xx) bodies are RFC 7807 problem documents whose ``errors``
list carries the ops error code::

    {
        "type": "about:blank",
        "title": "Cannot move build from 'Release' to 'Dev'",
        "status": 409,
        "detail": "build_id=3",
        "instance": "",
        "errors": [{"code": "ILLEGAL_PROGRESSION", "message": "...", "field": null}]
    }

Status by code: ``VALIDATION_FAILED`` and ``UNKNOWN_MILESTONE`` 400;
``NOT_FOUND`` and ``BUILD_NOT_FOUND`` 404; ``ILLEGAL_PROGRESSION``,
``DUPLICATE_ACTIVE_GATE`` and ``CONFLICT`` 409; ``LOCKED`` 423;
``STORE_FAILURE`` 500.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    code: str = Field(description="Ops error code, e.g. 'ILLEGAL_PROGRESSION'")
    message: str
    field: str | None = Field(default=None, description="Offending request field, if any")


class ProblemDetail(BaseModel):
    """RFC 7807 problem document."""

    type: str = "about:blank"
    title: str = Field(description="Short summary; the ops error message")
    status: int
    detail: str = Field(default="", description="Identifiers involved, as 'key=value' pairs")
    instance: str = ""
    errors: list[ErrorDetail] = Field(default_factory=list)


class SuccessResponse(BaseModel, Generic[T]):
    """Payload plus server-side timing and non-fatal warnings.

    ``warnings`` reports conditions that did not fail the request, such as
    a truncated dependency tree or an undelivered milestone notification.
    """

    data: T
    elapsed_ms: float = 0.0
    warnings: list[str] = Field(default_factory=list)
