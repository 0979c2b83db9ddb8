"""Request correlation and access logging.

Every request gets an id (the caller's ``X-Request-ID`` or a new one).
The id and the ``X-User`` header are bound into the structlog context, so
transition and store logs of the request carry them, and the id is echoed
in the response.
"""

from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from buildtrack.core.logging import LogContext, get_logger

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        with LogContext(request_id=request_id, user=request.headers.get("X-User")):
            response = await call_next(request)
            logger.info(
                "api.request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        response.headers["X-Request-ID"] = request_id
        return response
