"""
Yomimono HTTP API
=================

FastAPI application exposing the manual batch trigger and developer
inspection endpoints.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..config.settings import YomimonoSettings, get_settings
from ..database.connection import DatabaseConnection
from ..database.schema import DatabaseSchema
from ..utils.logging import get_logger_for_component
from .routers import batch, dev

logger = get_logger_for_component("api")


def create_app(
    settings: Optional[YomimonoSettings] = None,
    db: Optional[DatabaseConnection] = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Application settings (default from config)
        db: Database connection manager; one is opened on the configured
            path when omitted

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    owns_db = db is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Yomimono API")
        DatabaseSchema(settings.database.path).create_tables()
        yield
        if owns_db:
            app.state.db.close_all_connections()
        logger.info("Shutting down Yomimono API")

    app = FastAPI(
        title="Yomimono RSS API",
        description="Manual RSS batch trigger and ingestion inspection",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db or DatabaseConnection(settings.database.path, pool_size=settings.database.pool_size)

    app.include_router(batch.router, prefix="/api/rss/batch", tags=["Batch"])
    app.include_router(dev.router, prefix="/api/dev", tags=["Dev"])

    @app.get("/")
    async def root():
        return {"name": settings.app_name, "version": __version__, "status": "running"}

    return app
