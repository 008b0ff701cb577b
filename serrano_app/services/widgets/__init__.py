"""
Widget engine — catalog, payload envelopes, loaders and dispatch.

Modules:
  base        : WidgetDefinition, WidgetPayload/WidgetResponse envelopes, BaseLoader ABC.
  catalog     : WidgetCatalog over the static registry.
  helpers     : Scaling, binning and ranking utilities shared by loaders.
  loaders/    : Data-family loaders (geo, roster, market).
  dispatcher  : WidgetDispatcher — id → loader routing with scope short-circuit.
  kpis        : KpiService — KPI strip batch.
"""

from serrano_app.services.widgets.base import WidgetDefinition, WidgetPayload, WidgetResponse
from serrano_app.services.widgets.catalog import WidgetCatalog, widget_catalog

__all__ = [
    "WidgetDefinition",
    "WidgetPayload",
    "WidgetResponse",
    "WidgetCatalog",
    "widget_catalog",
]
