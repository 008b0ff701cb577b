"""
API v1 — Router aggregation.
"""

from fastapi import APIRouter

from serrano_app.api.v1.system import router as system_router
from serrano_app.api.v1.dashboard import router as dashboard_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(system_router)
api_router.include_router(dashboard_router)
