"""
Dashboard API Endpoints — widget data, KPI strip and catalog.

Routes:
  GET /dashboard/catalog?scope=X&q=&group= → widget picker entries
  GET /dashboard/widgets/{widget_id}       → one widget envelope
  GET /dashboard/widget?id=X               → same, id in the query string
  GET /dashboard/kpis?scope=X              → batched KPIs

Widget and KPI endpoints always answer HTTP 200: failures travel inside
the envelope (``ok: false`` or an ``empty`` payload) so one broken
widget never breaks the page.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from serrano_app.api.v1.dependencies import (
    get_catalog,
    get_dispatcher,
    get_kpi_service,
    parse_filters,
    request_origin,
)
from serrano_app.config.widget_registry import SIZE_COLUMN_SPANS, WIDGET_GROUP_LABELS
from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.widgets.base import normalize_scope
from serrano_app.services.widgets.catalog import WidgetCatalog
from serrano_app.services.widgets.dispatcher import WidgetDispatcher
from serrano_app.services.widgets.kpis import KpiService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

_SCOPE_QUERY = Query("both", description="serrano | market | both")


# ── Pydantic response models ─────────────────────────────────────

class CatalogResponse(BaseModel):
    """Response body for GET /dashboard/catalog."""
    scope: str = Field(..., description="Normalized viewing scope.")
    query: Optional[str] = Field(None, description="Free-text picker search, if any.")
    group: Optional[str] = Field(None, description="Group filter, if any.")
    groups: Dict[str, str] = Field(..., description="Group id → display label.")
    sizes: Dict[str, int] = Field(..., description="Size → grid column span.")
    widgets: List[Dict[str, Any]] = Field(default_factory=list)


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog_entries(
    scope: str = _SCOPE_QUERY,
    q: Optional[str] = Query(None, description="Matches title, description or keywords"),
    group: Optional[str] = Query(None, description="Widget group, or 'all'"),
    catalog: WidgetCatalog = Depends(get_catalog),
) -> CatalogResponse:
    """Widgets the picker offers under *scope* (KPIs excluded), optionally searched."""
    scope = normalize_scope(scope)
    return CatalogResponse(
        scope=scope,
        query=q,
        group=group,
        groups=WIDGET_GROUP_LABELS,
        sizes=SIZE_COLUMN_SPANS,
        widgets=[d.to_dict() for d in catalog.search(scope, query=q, group=group)],
    )


@router.get("/widgets/{widget_id}")
async def get_widget(
    widget_id: str,
    scope: str = _SCOPE_QUERY,
    filters: WidgetFilters = Depends(parse_filters),
    origin: Optional[str] = Depends(request_origin),
    dispatcher: WidgetDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    response = await dispatcher.dispatch(widget_id, filters, scope, origin)
    return response.to_dict()


@router.get("/widget")
async def get_widget_by_query(
    id: Optional[str] = Query(None, description="Widget id"),
    scope: str = _SCOPE_QUERY,
    filters: WidgetFilters = Depends(parse_filters),
    origin: Optional[str] = Depends(request_origin),
    dispatcher: WidgetDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    """Query-string variant; a missing ``id`` yields an ``empty`` envelope."""
    response = await dispatcher.dispatch(id, filters, scope, origin)
    return response.to_dict()


@router.get("/kpis")
async def get_kpis(
    scope: str = _SCOPE_QUERY,
    service: KpiService = Depends(get_kpi_service),
) -> Dict[str, Any]:
    return await service.load(scope)
