"""
Harvous Backend - FastAPI Application Factory
==============================================

What:  Builds the FastAPI app: logging, middleware, exception handlers,
       routers and the startup/shutdown lifecycle.
Who:   uvicorn (`uvicorn harvous.main:app`) and the test client.

Application Layout:
    ┌─────────────────────────────────────────────────────────┐
    │  Middleware: RateLimit → RequestID → Logging → GZip     │
    │              → CORS                                     │
    │                                                         │
    │  Routers:    /api/notes  /api/threads  /api/spaces      │
    │              /api/tags   /api/scripture  /health        │
    │                                                         │
    │  Handlers:   Validation/Parse → 400   Auth → 401        │
    │              NotFound → 404   RateLimit → 429           │
    │              VerseService/Circuit → 503   DB → 500      │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate settings, log the listen address
    Shutdown: close the verse API client, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from harvous import __version__
from harvous.config import settings
from harvous.database import dispose_engine
from harvous.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    DatabaseError,
    HarvousError,
    NotFoundError,
    ParseError,
    RateLimitExceededError,
    ValidationError,
    VerseServiceError,
)
from harvous.middleware.logging import RequestLoggingMiddleware
from harvous.middleware.rate_limit import RateLimitMiddleware
from harvous.middleware.request_id import RequestIDMiddleware, request_id_var
from harvous.routes import health, notes, scripture, spaces, tags, threads
from harvous.services.bible_service import bible_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout at settings.log_level; quiet chatty libraries."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Harvous backend %s starting", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health then reports what is broken.
        logger.error("Configuration error: %s", str(e))

    logger.info(
        "Verse API: %s (%s), detector chapter-only=%s verse-lists=%s",
        settings.bible_api_url,
        settings.bible_translation,
        settings.detector_allow_chapter_only,
        settings.detector_allow_verse_lists,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Harvous backend shutting down")
    await bible_service.aclose()
    await dispose_engine()
    logger.info("Shutdown complete")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map HarvousError subclasses to status codes and the shared error body
    {error, message, details?, request_id}.

    Server-side failures (500) never echo exception details to the client;
    they are logged with the request id instead.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(ParseError)
    async def handle_parse_error(request: Request, exc: ParseError):
        logger.info("[%s] Unparseable reference: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "parse_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(401, "unauthorized", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429, "rate_limit_exceeded", exc.message,
            {"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Verse API circuit open: %s", request_id_var.get(""), exc.message)
        return _error_response(
            503, "service_unavailable", exc.message,
            {"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(VerseServiceError)
    async def handle_verse_service_error(request: Request, exc: VerseServiceError):
        logger.error("[%s] Verse service error: %s", request_id_var.get(""), exc.message)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error_response(503, "verse_service_error", exc.message, headers=headers)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(HarvousError)
    async def handle_harvous_error(request: Request, exc: HarvousError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Harvous API",
        description="Notes, threads and spaces with scripture reference detection and auto tagging.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Added innermost first; the last one added handles the request first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    for router_module in (notes, threads, spaces, tags, scripture, health):
        app.include_router(router_module.router)

    return app


app = create_app()
