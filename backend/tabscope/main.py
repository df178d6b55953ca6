"""
TabScope Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, exception handlers and routers;
       the lifespan validates settings, seeds system tabs and disposes the
       engine on shutdown.
Who:   uvicorn (`uvicorn tabscope.main:app`).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Access Log → GZip → CORS │
    │                                                     │
    │  Routes:                                            │
    │    /api/tab-configs   /api/tab-presets   /health    │
    │                                                     │
    │  Exception Handlers:                                │
    │    TabScopeError → exc.status_code                  │
    │    DatabaseError → 500 (generic message)            │
    │    Exception     → 500                              │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from tabscope import __version__
from tabscope.config import settings
from tabscope.database import dispose_engine
from tabscope.exceptions import DatabaseError, TabScopeError
from tabscope.middleware.logging import RequestLoggingMiddleware
from tabscope.middleware.request_id import RequestIDMiddleware, request_id_var
from tabscope.routes import health, tab_configs, tab_presets

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout at settings.log_level; third-party noise at WARNING."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Configure logging
        2. Validate settings (errors are logged, the server still starts so
           /health can report)
        3. Seed system tabs when settings.seed_on_startup is set
    Shutdown:
        Dispose the database engine.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("TabScope Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    if settings.seed_on_startup:
        from tabscope.services.seeding import seed_with_retry

        try:
            inserted = await seed_with_retry()
            logger.info("System tab seeding done: %d inserted", inserted)
        except DatabaseError as e:
            logger.error("System tab seeding failed: %s | Context: %s", e.message, e.context)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("TabScope Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Every TabScopeError carries its own status_code and error_code, so one
    handler covers the hierarchy. Server-side failures never expose their
    context in the response.
    """

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(TabScopeError)
    async def handle_tabscope_error(request: Request, exc: TabScopeError):
        rid = request_id_var.get("")
        logger.warning("[%s] %s: %s", rid, exc.error_code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "message": exc.message,
                "details": exc.context or None,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="TabScope API",
        description=(
            "Scoped tab configuration for clinical workspaces: system defaults "
            "overridden per organization, role and user."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added executes first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(tab_configs.router)
    app.include_router(tab_presets.router)
    app.include_router(health.router)

    return app


app = create_app()
