"""
TabScope Backend — Access Log Middleware
==========================================

What:  One log line per API request: method, path, status, duration, the
       request id and the tenant the caller acted in.
How:   Severity follows the status class (5xx ERROR, 4xx WARNING, else INFO)
       so refused overrides show up without drowning in successful reads.

Health probes are not logged. Request bodies and user ids are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tabscope.middleware.request_id import request_id_var

logger = logging.getLogger("tabscope.access")

_SKIPPED_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _SKIPPED_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        organization = request.headers.get("X-Organization-Id", "-")
        logger.log(
            level,
            "%s %s %d %.1fms [%s] org=%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            organization,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "organization_id": organization,
            },
        )
        return response
