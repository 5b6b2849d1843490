"""
Kadzai Backend — Access Logging Middleware
===========================================

What:  One log line per request: method, path, status, duration, request ID,
       client IP. Level follows the status class (5xx ERROR, 4xx WARNING).
Not logged: request bodies, query strings and headers. They carry emails,
       phone numbers, payment references and bearer tokens.

Example:
    2025-03-07T10:15:02 [INFO] kadzai.access: POST /api/paystack/verify 200 412.3ms [a1b2c3d4] from 10.0.0.7
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from kadzai.middleware.request_id import request_id_var

logger = logging.getLogger("kadzai.access")

QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        logger.log(
            level,
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
