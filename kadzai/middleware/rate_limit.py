"""
Kadzai Backend — Rate Limiting Middleware
==========================================

What:  Per-IP sliding-window limiter kept in process memory.
How:   Each IP maps to the timestamps of its requests inside the window;
       a request arriving with the window full gets 429 and Retry-After.

Excluded paths: health checks, API docs, and the Paystack webhook (Paystack
delivers from a small set of IPs and a throttled webhook means a paid
booking is never created).

Limitation: state is per process. Several uvicorn workers each enforce
their own budget.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from kadzai.config import settings
from kadzai.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {
        "/health",
        "/docs",
        "/openapi.json",
        "/redoc",
        "/api/paystack/webhook",
    }

    def __init__(self, app, max_requests: int = None, window_seconds: int = None, **kwargs):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window_seconds

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                self.window_seconds,
            )
            # Exception handlers do not see errors raised inside middleware,
            # so the error body is rendered here.
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": exc.error_code,
                    "message": exc.message,
                    "details": exc.context,
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)

        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive = [
            ip for ip, stamps in self._requests.items()
            if not stamps or stamps[-1] < window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Dropped %d inactive IP entries", len(inactive))
