"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn mootcourt.api.app:app --reload``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mootcourt.api.middleware.error_handler import register_error_handlers
from mootcourt.api.routes import ai_models, auth, exercises, feedback, progress, tools, videos
from mootcourt.core.config import get_settings
from mootcourt.core.models import HealthResponse
from mootcourt.services import analysis
from mootcourt.services.storage.database import close_db, init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: create tables and apply column migrations.
    Shutdown: cancel queued AI analyses, then dispose the DB engine.
    """
    await init_db()
    yield
    await analysis.cancel_pending()
    await close_db()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""
    settings = get_settings()
    logging.getLogger("mootcourt").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="MootCourt",
        description="Advocacy training: exercises, recorded submissions, and feedback.",
        version="0.1.0",
        lifespan=lifespan,
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    for module in (auth, exercises, progress, feedback, videos, tools, ai_models):
        app.include_router(module.router, prefix="/api")

    return app


app = create_app()
