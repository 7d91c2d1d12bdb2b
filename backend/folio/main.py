"""
Folio Backend — FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn folio.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:   Request ID → Logging → GZip → CORS        │
    │                                                          │
    │  Routes:                                                 │
    │  ┌────────────────┐ ┌─────────────┐ ┌──────────────────┐ │
    │  │ /api/reflections│ │ /api/albums │ │ /api/tags, files │ │
    │  └────────────────┘ └─────────────┘ └──────────────────┘ │
    │                                                 /health  │
    │  Exception Handlers:                                     │
    │  Validation→400 │ Unauth→401 │ Forbidden→403 │ 404 │     │
    │  Upstream→400 │ anything else→500                        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → open object storage
    Shutdown: close object storage → dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from folio import __version__
from folio.config import settings
from folio.database import dispose_engine
from folio.exceptions import (
    ForbiddenError,
    NotFoundError,
    StorageCleanupError,
    UnauthenticatedError,
    UpstreamFailureError,
    ValidationError,
)
from folio.middleware.logging import RequestLoggingMiddleware
from folio.middleware.request_id import RequestIDMiddleware, request_id_var
from folio.routes import albums, files, health, reflections, tags
from folio.services.storage_service import create_storage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] folio.services.album_service: Album created: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the process-wide resources and release them at shutdown.

    The database engine is created at import (folio.database); the object
    storage client is created here and kept on app.state for get_storage.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Folio Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        raise

    if getattr(app.state, "storage", None) is None:
        app.state.storage = create_storage(settings)
    logger.info("Object storage: %s (bucket=%s)", app.state.storage.name, settings.storage_bucket)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Folio Backend shutting down...")
    await app.state.storage.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the error taxonomy to HTTP responses.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400 validation_error
        UnauthenticatedError                     → 401 unauthenticated
        ForbiddenError                           → 403 forbidden
        NotFoundError                            → 404 not_found
        StorageCleanupError                      → 400 storage_cleanup_failed
        UpstreamFailureError, SQLAlchemyError    → 400 upstream_failure
        Exception (fallback)                     → 500 internal_server_error

    Upstream failures never expose their context (paths, SQL, provider
    errors); it is logged server-side with the request id.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent invalid input — tell them what's wrong."""
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed body, query or form: one entry per offending field."""
        fields = [
            {
                "field": ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path", "form")),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), fields)
        return _error(400, "validation_error", "Request validation failed", {"fields": fields})

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        return _error(401, "unauthenticated", exc.message)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.warning("[%s] Forbidden: %s", request_id_var.get(""), exc.context)
        return _error(403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        """Requested resource doesn't exist, or is a draft the caller may not see."""
        return _error(404, "not_found", exc.message)

    @app.exception_handler(StorageCleanupError)
    async def handle_storage_cleanup(request: Request, exc: StorageCleanupError):
        """Partial delete: tell the client which images are still there."""
        logger.error("[%s] Storage cleanup incomplete: %s", request_id_var.get(""), exc.context)
        remaining = [failure["image_id"] for failure in exc.failures]
        return _error(
            400,
            "storage_cleanup_failed",
            exc.message,
            {"failedImageIds": remaining},
        )

    @app.exception_handler(UpstreamFailureError)
    async def handle_upstream_failure(request: Request, exc: UpstreamFailureError):
        """Storage or database call failed: generic message, details logged."""
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""), type(exc).__name__, exc.message, exc.context,
        )
        return _error(400, "upstream_failure", exc.message)

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_failure(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database error: %s", request_id_var.get(""), exc, exc_info=exc)
        return _error(400, "upstream_failure", "A database error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for truly unexpected errors.

        Stack trace is logged server-side ONLY (never in response).
        """
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=exc)
        return _error(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Folio API",
        description=(
            "Backend for a personal blog and photo portfolio: reflections with a "
            "draft/publish lifecycle, tags, and photo albums backed by object storage."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["POST", "GET", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(reflections.router)
    app.include_router(albums.router)
    app.include_router(tags.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
