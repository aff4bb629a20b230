"""
FastAPI application initialization
"""

import logging
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from api.middleware import RequestContextMiddleware
from api.routes import health, runs
from core.config import Settings, get_settings
from core.database import create_db_engine, create_session_factory
from core.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    session_factory: Optional[sessionmaker] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the monitoring API.

    Args:
        session_factory: Sessions used by the endpoints; when omitted one is
            created from DATABASE_URL at startup
        settings: Defaults to the process settings
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Batch Jobs API",
        description="Read-only monitoring of batch job runs and checkpoints",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.session_factory = session_factory
    app.state.engine = None

    app.add_middleware(RequestContextMiddleware)

    app.include_router(health.router)
    app.include_router(runs.router)

    @app.on_event("startup")
    def startup_event():
        """Application startup event"""
        logger.info("Starting Batch Jobs API")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        if app.state.session_factory is None:
            url = settings.DATABASE_URL
            logger.info(f"Database: {url.split('@')[1] if '@' in url else 'configured'}")
            app.state.engine = create_db_engine(url, pool_pre_ping=True)
            app.state.session_factory = create_session_factory(app.state.engine)

    @app.on_event("shutdown")
    def shutdown_event():
        """Application shutdown event"""
        logger.info("Shutting down Batch Jobs API")
        if app.state.engine is not None:
            app.state.engine.dispose()

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": "Batch Jobs API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "runs": "/runs",
                "checkpoints": "/checkpoints"
            }
        }

    return app


def build_app() -> FastAPI:
    """Entry point for ``uvicorn --factory api.main:build_app``"""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    return create_app(settings=settings)
