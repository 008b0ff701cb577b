"""
FastAPI dependencies — service providers and request parsing.

Single Responsibility: provide ``Depends()`` callables so endpoints do
not import singletons directly (tests swap them through
``app.dependency_overrides``).
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.filters.engine import filter_engine
from serrano_app.services.widgets.catalog import WidgetCatalog, widget_catalog
from serrano_app.services.widgets.dispatcher import WidgetDispatcher, widget_dispatcher
from serrano_app.services.widgets.kpis import KpiService, kpi_service


def get_dispatcher() -> WidgetDispatcher:
    return widget_dispatcher


def get_kpi_service() -> KpiService:
    return kpi_service


def get_catalog() -> WidgetCatalog:
    return widget_catalog


def parse_filters(request: Request) -> WidgetFilters:
    """Dependency: widget filters from the raw query string."""
    return filter_engine.parse(request.query_params)


def request_origin(request: Request) -> Optional[str]:
    """``scheme://host[:port]`` the server was addressed at; the ``Origin`` header is ignored."""
    return str(request.base_url).rstrip("/") or None
