"""
Harvous Backend - Rate Limiting Middleware
===========================================

What:  In-memory sliding-window limiter, rate_limit_requests per
       rate_limit_window seconds for each client.
How:   A deque of request timestamps per client key. Timestamps older than
       the window are dropped on every hit; a full deque means 429 with a
       Retry-After of when its oldest entry expires.
Who:   Outermost application middleware (added last in create_app()).

Client key:
    The authenticated user id header when present, the peer address
    otherwise. Several users behind one gateway do not share a budget.

Limits are per process. Multiple uvicorn workers each keep their own
windows.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from harvous.config import settings
from harvous.exceptions import RateLimitExceededError
from harvous.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})
_SWEEP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, max_requests: int = None, window_seconds: int = None, **kwargs):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    @staticmethod
    def client_key(request: Request) -> str:
        user_id = request.headers.get(settings.user_id_header)
        if user_id:
            return f"user:{user_id}"
        host = request.client.host if request.client else "unknown"
        return f"ip:{host}"

    def check(self, key: str, now: float) -> None:
        """
        Record a hit for key.

        Raises:
            RateLimitExceededError: key already used its budget for the window
        """
        hits = self._hits[key]
        window_start = now - self.window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = int(hits[0] + self.window_seconds - now) + 1
            raise RateLimitExceededError(retry_after=retry_after, context={"client": key})

        hits.append(now)

        self._seen += 1
        if self._seen % _SWEEP_EVERY == 0:
            self._sweep(window_start)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        key = self.client_key(request)
        try:
            self.check(key, time.time())
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                key, self.max_requests, self.window_seconds,
            )
            # Raised inside middleware, so the app's exception handlers never see it.
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": {"retry_after": exc.retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Dropped %d idle rate-limit entries", len(idle))
