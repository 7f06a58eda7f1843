"""
DevCamper API — FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers, routers and
       the uploads static mount, and returns the app.
Who:   uvicorn (uvicorn devcamper.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware: RequestID → RateLimit → Logging → GZip  │
    │                                                      │
    │  Routes:                                             │
    │   /api/v1/bootcamps[...]   /api/v1/courses[...]      │
    │   /health                  /uploads/<photo>          │
    │                                                      │
    │  Exception handlers → {"success": false, "error"}    │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate settings, ensure upload directory
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from devcamper import __version__
from devcamper.config import settings
from devcamper.database import dispose_engine
from devcamper.exceptions import (
    DatabaseError,
    DevCamperError,
    FileStorageError,
    NotFoundError,
    ValidationError,
)
from devcamper.middleware.logging import RequestLoggingMiddleware
from devcamper.middleware.rate_limit import RateLimitMiddleware
from devcamper.middleware.request_id import RequestIDMiddleware, request_id_var
from devcamper.routes import bootcamps, courses, health

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server Error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2024-01-15T12:00:00 [INFO] devcamper.services.course_service: ...
    Output goes to stdout so container runtimes collect it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-query and per-request noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("DevCamper API %s starting up...", __version__)

    settings.validate_listing_bounds()

    uploads = Path(settings.file_upload_path)
    uploads.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", uploads.resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("DevCamper API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    """The one error body every failure is rendered as."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "request_id": request_id_var.get(""),
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the error taxonomy to status codes in one place.

        ValidationError, RequestValidationError → 400
        NotFoundError                           → 404
        FileStorageError                        → 500 "Problem with file upload"
        DatabaseError                           → 500 generic message
        DevCamperError (other)                  → its status_code
        Exception                               → 500 generic message

    Server-side details (context, stack traces) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Body/path schema failures use the same 400 shape as our own validation."""
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            text = error.get("msg", "Invalid value")
            messages.append(f"{location}: {text}" if location else text)
        message = ", ".join(messages) or "Invalid request"
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return error_response(400, message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, exc.message)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(500, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(500, GENERIC_SERVER_ERROR)

    @app.exception_handler(DevCamperError)
    async def handle_app_error(request: Request, exc: DevCamperError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_response(500, GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DevCamper API",
        description=(
            "Bootcamp directory backend: bootcamps, their courses, photo uploads "
            "and average course cost."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → RateLimit → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(bootcamps.router)
    app.include_router(courses.router)
    app.include_router(health.router)

    # Stored photos are served as-is: /uploads/photo_<id>.jpg
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.file_upload_path, check_dir=False),
        name="uploads",
    )

    return app


app = create_app()
