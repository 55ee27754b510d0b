"""
Skills Platform Backend — FastAPI Application Factory
=======================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers.
Who:   uvicorn imports `skills_platform.main:app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware: CORS → Request ID → Logging → Rate Limit        │
    │              → Body Limit → GZip                             │
    │                                                              │
    │  Routes: /  /api/health  /api/schools  /api/auth/*           │
    │          /api/tasks/*  /api/submissions/*                    │
    │          /api/performance/*  /api/ai/*                       │
    │                                                              │
    │  Exception Handlers:                                         │
    │    SkillsPlatformError → its status_code and code            │
    │    RequestValidationError → 400   unknown route → 404        │
    │    anything else → 500                                       │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, AI status banner
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skills_platform import __version__
from skills_platform.config import settings
from skills_platform.database import dispose_engine
from skills_platform.exceptions import (
    CircuitBreakerOpenError,
    DatabaseError,
    LLMServiceError,
    RateLimitExceededError,
    SkillsPlatformError,
    ValidationError,
)
from skills_platform.middleware.body_limit import BodySizeLimitMiddleware
from skills_platform.middleware.logging import RequestLoggingMiddleware
from skills_platform.middleware.rate_limit import RateLimitMiddleware
from skills_platform.middleware.request_id import RequestIDMiddleware, request_id_var
from skills_platform.routes import ai, auth, performance, root, schools, submissions, tasks

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Request-ID"]


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process. Called once, first thing in
    the lifespan.

    Format: 2024-01-15T12:00:00 [INFO] skills_platform.access: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access middleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("grpc").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup never aborts on configuration problems: they are logged, and
    the health check reports what is broken.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Skills Platform Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if not settings.ai_enabled:
        logger.warning("GEMINI_API_KEY is not set: AI features are disabled")

    logger.info("Port: %d", settings.backend_port)
    logger.info("Environment: %s", settings.environment)
    logger.info("Health check: http://%s:%d/api/health", settings.backend_host, settings.backend_port)
    logger.info("CORS allowed origins: %d", len(settings.cors_origins_list))
    logger.info("AI status: %s", "enabled" if settings.ai_enabled else "disabled")
    logger.info("=" * 60)

    yield

    logger.info("Skills Platform Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the error envelope:
        {"success": false, "error": ..., "code": ..., "request_id": ..., "details"?: ...}

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        RateLimitExceededError                    → 429 + Retry-After
        CircuitBreakerOpenError, LLMServiceError  → 503 + Retry-After
        DatabaseError                             → 500, generic message
        SkillsPlatformError (base)                → the exception's status_code
        StarletteHTTPException 404                → 404 with path and method
        Exception (fallback)                      → 500 internal_server_error

    Exception context is logged; only handlers listed with details return it.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        details = {"field": exc.field} if exc.field else None
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_envelope(rid, details=details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Schema failures become 400 with the first problem as the message."""
        rid = request_id_var.get("")
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        if first.get("type") == "missing":
            message = f"{location} is required" if location else "Request body is required"
        elif location:
            message = f"Invalid {location}: {first.get('msg', 'invalid value')}"
        else:
            message = first.get("msg", "Invalid request")

        logger.warning("[%s] Request validation failed: %s", rid, message)
        error = ValidationError(message, field=location or None)
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_envelope(
                rid,
                details={
                    "errors": [
                        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                        for e in errors
                    ]
                },
            ),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_envelope(request_id_var.get(""), details={"retry_after": exc.retry_after}),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        rid = request_id_var.get("")
        logger.warning("[%s] Circuit breaker open: %s", rid, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_envelope(rid, details={"recovery_time": exc.recovery_time}),
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(LLMServiceError)
    async def handle_llm_error(request: Request, exc: LLMServiceError):
        rid = request_id_var.get("")
        logger.error("[%s] LLM service error: %s | Context: %s", rid, exc.message, exc.context)
        headers = {}
        if exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_envelope(rid),
            headers=headers,
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope(rid))

    @app.exception_handler(SkillsPlatformError)
    async def handle_platform_error(request: Request, exc: SkillsPlatformError):
        """403, 404, 401, 413, 502, 503 ai_unavailable and the like."""
        rid = request_id_var.get("")
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(level, "[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope(rid))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = request_id_var.get("")
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "error": "Endpoint not found",
                    "code": "not_found",
                    "request_id": rid,
                    "path": request.url.path,
                    "method": request.method,
                    "message": "Please check the URL",
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": str(exc.detail),
                "code": "http_error",
                "request_id": rid,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the log; the exception text only in development."""
        # Runs outside RequestIDMiddleware, after the ContextVar was reset
        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        content = {
            "success": False,
            "error": "A server error occurred",
            "code": "internal_server_error",
            "request_id": rid,
        }
        if settings.is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Skills Platform API",
        description=(
            "Backend for tracking 21st-century skills: schools, tasks, submissions, "
            "performance dashboards, and Gemini-powered grading and recommendations."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition (last added runs first)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_exception_handlers(app)

    app.include_router(root.router)
    app.include_router(schools.router)
    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(submissions.router)
    app.include_router(performance.router)
    app.include_router(ai.router)

    return app


app = create_app()
