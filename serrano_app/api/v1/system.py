"""System endpoints — liveness and database readiness."""

import logging

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from serrano_app.core.config import settings
from serrano_app.core.database import db_manager
from serrano_app.services.widgets.catalog import widget_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def health_check():
    """Basic liveness probe."""
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "widgets": len(widget_catalog.ids()),
    }


@router.get("/ready")
async def readiness_check():
    """Database round-trip; 503 when the database is unreachable."""
    try:
        async with db_manager.get_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error(f"[System] Database not ready: {exc}")
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ready"}
