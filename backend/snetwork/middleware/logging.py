"""
S-Network Backend — Request Logging Middleware
================================================

What:  One access log line per request: method, path, status, duration,
       request id, client IP and acting user (X-User-ID, when sent).
How:   Logged on the `snetwork.access` logger; the level follows the status
       class (5xx ERROR, 4xx WARNING, otherwise INFO). The same values are
       attached as `extra` fields for structured handlers.

Never logged: request bodies (passwords, message contents) and any header
other than the ones listed above.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snetwork.middleware.request_id import request_id_var

logger = logging.getLogger("snetwork.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access logging with duration tracking. /health is not logged."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        user_id = request.headers.get("X-User-ID", "-")
        rid = request_id_var.get("")

        if path == "/health":
            return await call_next(request)

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
            "%s %s %d %.1fms [%s] user=%s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )

        return response
