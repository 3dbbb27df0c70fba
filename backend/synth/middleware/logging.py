"""
Synth Backend: Request Logging Middleware
==========================================

What:  One access-log line per HTTP request, with status and duration.
How:   Times the downstream call and logs method, path, status, duration,
       request id and client IP on the `synth.access` logger. The level
       follows the status: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
Who:   Applied to every request via Starlette middleware, after
       RequestIDMiddleware so the id is available.

Request bodies are never logged: they carry passwords and snippet code.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from synth.middleware.request_id import request_id_var

logger = logging.getLogger("synth.access")

# Polled constantly by probes; kept out of the access log
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
