"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from indexsync import __version__
from indexsync.api.deps import set_engine
from indexsync.api.headers import failure_alert
from indexsync.api.v1.router import router as api_router
from indexsync.config.settings import CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE, Settings
from indexsync.core.engine import IndexSyncEngine
from indexsync.errors import AppError
from indexsync.observability.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, engine: IndexSyncEngine | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.
        engine: Pre-built engine to serve. If None, one is built from
            ``settings`` at startup.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        # Auto-detect indexsync-config.yaml if present
        yaml_path = Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))
        settings = Settings.from_yaml(yaml_path) if yaml_path.exists() else Settings()

    setup_logging(settings.observability)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        logger.info("Starting indexsync v%s", __version__)

        runtime = engine or IndexSyncEngine(settings)
        await runtime.initialize()
        set_engine(runtime)

        app.state.settings = settings
        app.state.engine = runtime

        logger.info("indexsync is ready to serve requests on port %d", settings.server.port)
        yield

        logger.info("Shutting down indexsync...")
        await runtime.shutdown()
        set_engine(None)
        logger.info("indexsync shutdown complete")

    app = FastAPI(
        title="indexsync",
        description=(
            "Product records in an authoritative store, mirrored into a full-text "
            "search index that is kept eventually consistent with it."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Link", "X-Total-Count", "Location", "X-*"],
    )

    app_name = settings.server.client_app_name

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.info("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error_key)
        return JSONResponse(
            exc.to_dict(),
            status_code=exc.status_code,
            headers=failure_alert(app_name, exc.entity_name, exc.error_key),
        )

    app.include_router(api_router, prefix="/api")

    return app
