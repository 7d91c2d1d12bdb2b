"""
Folio Backend — Request Logging Middleware
============================================

What:  One access-log line per request on the `folio.access` logger.
Why:   Method, path, status and duration in one place, correlated with the
       request id, without relying on uvicorn's access log.

Logged:   method, path, status, duration, request id, client IP, principal id
Not logged: bodies, cookies, Authorization headers, uploaded file contents
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from folio.middleware.request_id import request_id_var

logger = logging.getLogger("folio.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request once it has been answered.

    Level by status class: 5xx → ERROR, 4xx → WARNING, else INFO.
    /health is skipped (probes run every few seconds).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
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

        # Set by the identity dependency when the route resolved a principal
        principal = getattr(request.state, "principal", None)
        user_id = principal.id if principal is not None and principal.id else "-"

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s user=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_id,
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
