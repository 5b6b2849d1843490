"""
Kadzai Backend — Request ID Middleware
=======================================

What:  Gives every request a short correlation ID, exposed to loggers via a
       ContextVar, to handlers via `request.state.request_id`, and to clients
       via the `X-Request-ID` response header.
How:   A client-supplied `X-Request-ID` is reused (so the frontend can tie a
       failed checkout to server logs); otherwise 8 hex chars of a UUID4.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get("X-Request-ID", "").strip()
        rid = supplied[:MAX_CLIENT_ID_LENGTH] if supplied else uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
