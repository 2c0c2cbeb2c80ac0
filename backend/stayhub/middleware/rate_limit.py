"""
StayHub Backend: Rate Limiting Middleware
==========================================

What:  Per-IP sliding window rate limiter.
How:   Each client IP owns a deque of request times. Times that fall out of
       the window are popped from the left on every request; a full window
       gets a 429 with Retry-After.

Memory:
    A client that stops calling would otherwise keep its deque forever, so
    once per window the table is swept and every IP whose newest request is
    older than the window is dropped. Table size is bounded by the number
    of IPs seen in the last two windows.

Scope:
    In-memory, so the limit is per worker process. That is the only shared
    mutable state in the service.

Excluded paths:
    Health checks, the OpenAPI docs, and the payment webhook. The processor
    delivers webhooks from a small pool of addresses and retries anything
    non-2xx, so limiting it would only turn one delivery into several.
"""

import logging
import math
import time
from collections import deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from stayhub.config import settings
from stayhub.exceptions import RateLimitExceededError
from stayhub.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {
        "/api/health",
        "/docs",
        "/openapi.json",
        "/redoc",
        "/api/payments/webhook",
    }

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock=time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window = window_seconds or settings.rate_limit_window
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._next_sweep = clock() + self.window

    @property
    def tracked_clients(self) -> int:
        return len(self._hits)

    def _sweep(self, now: float) -> None:
        cutoff = now - self.window
        stale = [ip for ip, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for ip in stale:
            del self._hits[ip]
        self._next_sweep = now + self.window
        if stale:
            logger.debug("Rate limiter dropped %d idle clients", len(stale))

    def check(self, client_ip: str) -> Optional[int]:
        """
        Record one request from `client_ip`.

        Returns None when the request is allowed, otherwise the number of
        seconds until the oldest request in the window expires.
        """
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)

        hits = self._hits.setdefault(client_ip, deque())
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return max(1, math.ceil(hits[0] + self.window - now))

        hits.append(now)
        return None

    def _reject(self, client_ip: str, retry_after: int) -> JSONResponse:
        logger.warning(
            "Rate limit exceeded for IP %s: %d requests in %ds window",
            client_ip,
            self.max_requests,
            self.window,
        )
        # Middleware runs outside the exception handlers, so render here
        exc = RateLimitExceededError(retry_after=retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a proxy this is the proxy's address unless uvicorn runs
        # with --proxy-headers
        client_ip = request.client.host if request.client else "unknown"

        retry_after = self.check(client_ip)
        if retry_after is not None:
            return self._reject(client_ip, retry_after)

        return await call_next(request)
