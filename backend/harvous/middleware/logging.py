"""
Harvous Backend - Access Log Middleware
========================================

What:  One log line per request: method, path, status, duration, request id
       and the acting user.
How:   Wraps call_next with a perf_counter timer. The level follows the
       status class (5xx ERROR, 4xx WARNING, otherwise INFO) so alerting
       can key off severity alone.
Who:   Registered in create_app() inside RequestIDMiddleware, so the id is
       already set when this runs.

Request and response bodies are never logged: note content is private.
/health is skipped, probes hit it every few seconds.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from harvous.config import settings
from harvous.middleware.request_id import request_id_var

logger = logging.getLogger("harvous.access")

QUIET_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


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

        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        user_id = request.headers.get(settings.user_id_header, "-")
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s] user=%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
            },
        )
        return response
