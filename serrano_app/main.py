"""
FastAPI application factory + lifespan.

This is the **data engine** of the dashboard:
- REST API for widget envelopes, the KPI strip and the widget catalog.
- CORS configured for the dashboard frontend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from serrano_app.core.config import configure_logging, settings
from serrano_app.core.database import db_manager
from serrano_app.api.v1 import api_router

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: logging is configured, the DB engine is created lazily.
    Shutdown: close DB connections.
    """
    configure_logging()
    logger.info(f"Starting {settings.APP_NAME} API ({settings.APP_ENV})")

    yield

    logger.info("Shutting down API")
    await db_manager.close()
    logger.info("DB connections closed")


def create_fastapi_app() -> FastAPI:
    """Application factory for FastAPI."""
    app = FastAPI(
        title="Serrano Dashboard API",
        description="Widget data and KPIs for the club analytics dashboard",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "app": settings.APP_NAME,
            "version": APP_VERSION,
            "status": "running",
            "docs": "/api/docs" if settings.DEBUG else "disabled",
        }

    return app


# Module-level instance for ``uvicorn serrano_app.main:app``
app = create_fastapi_app()
