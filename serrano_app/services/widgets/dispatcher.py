"""
WidgetDispatcher — widget id → loader family, via an ordered route list.

Single Responsibility: pick the loader for a widget id, apply the scope
short-circuit, and guarantee one envelope per request.  The dispatcher
never raises: bad ids, scope mismatches and unexpected failures all
degrade to an ``empty`` card.

Routes are evaluated in order; the first matching predicate wins and
the final entry is the "not recognized" fallback::

    overview.               → GeoLoader
    serrano. / kpi.serrano. → RosterLoader   (scope: serrano)
    market.  / kpi.market.  → MarketLoader   (scope: market)
    compare.                → not enabled yet
    *                       → not recognized

Usage::

    from serrano_app.services.widgets.dispatcher import widget_dispatcher

    response = await widget_dispatcher.dispatch(
        "serrano.age_distribution", filters, scope="both",
    )
    response.to_dict()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from serrano_app.config.widget_registry import SCOPE_LABELS
from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.widgets.base import (
    LoadContext,
    WidgetResponse,
    normalize_scope,
    scopes_compatible,
)
from serrano_app.services.widgets.catalog import WidgetCatalog, widget_catalog
from serrano_app.services.widgets.loaders.geo import GeoLoader
from serrano_app.services.widgets.loaders.market import MarketLoader
from serrano_app.services.widgets.loaders.roster import RosterLoader

logger = logging.getLogger(__name__)

MISSING_ID = "Parâmetro de widget ausente/inválido."
NOT_RECOGNIZED = "Widget não reconhecido."
COMPARE_DISABLED = "Widgets comparativos ainda não habilitados."
INTERNAL_ERROR = "Erro interno ao carregar widget."

RouteHandler = Callable[[str, WidgetFilters, LoadContext], Awaitable[WidgetResponse]]


def prefix_predicate(*prefixes: str) -> Callable[[str], bool]:
    return lambda widget_id: widget_id.startswith(prefixes)


@dataclass
class WidgetRoute:
    """One ``(predicate, handler)`` pair. ``scope`` is the family's scope."""
    name: str
    predicate: Callable[[str], bool]
    handler: RouteHandler
    scope: str = "both"


class WidgetDispatcher:
    """
    Ordered-route dispatcher.

    Scope of a widget = its catalog scope, or the route's family scope
    for ids the catalog does not know (e.g. a KPI rendered ad hoc).
    """

    def __init__(
        self,
        geo: Optional[GeoLoader] = None,
        roster: Optional[RosterLoader] = None,
        market: Optional[MarketLoader] = None,
        catalog: Optional[WidgetCatalog] = None,
    ) -> None:
        self.geo = geo or GeoLoader()
        self.roster = roster or RosterLoader()
        self.market = market or MarketLoader()
        self.catalog = catalog or widget_catalog
        self.routes: List[WidgetRoute] = [
            WidgetRoute("overview", prefix_predicate("overview."), self.geo.load),
            WidgetRoute(
                "serrano",
                prefix_predicate("serrano.", "kpi.serrano."),
                self.roster.load,
                scope="serrano",
            ),
            WidgetRoute(
                "market",
                prefix_predicate("market.", "kpi.market."),
                self.market.load,
                scope="market",
            ),
            WidgetRoute("compare", prefix_predicate("compare."), self._compare_stub),
        ]

    async def dispatch(
        self,
        widget_id: Optional[str],
        filters: Optional[WidgetFilters] = None,
        scope: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> WidgetResponse:
        filters = filters or WidgetFilters()
        scope = normalize_scope(scope)

        if not isinstance(widget_id, str) or not widget_id.strip():
            return WidgetResponse.empty("unknown", MISSING_ID)
        widget_id = widget_id.strip()

        try:
            route = self._match(widget_id)
            if route is None:
                logger.info(f"[WidgetDispatcher] Unrecognized widget id '{widget_id}'")
                return WidgetResponse.empty(widget_id, NOT_RECOGNIZED, filters=filters)

            widget_scope = self._widget_scope(widget_id, route)
            if not scopes_compatible(widget_scope, scope):
                return WidgetResponse.empty(
                    widget_id,
                    f"Widget não aplicável ao escopo {SCOPE_LABELS[scope]}.",
                    filters=filters,
                )

            ctx = LoadContext(scope=scope, origin=origin)
            return await route.handler(widget_id, filters, ctx)
        except Exception as exc:
            logger.error(
                f"[WidgetDispatcher] Error dispatching '{widget_id}': {exc}",
                exc_info=True,
            )
            return WidgetResponse.empty(widget_id, INTERNAL_ERROR)

    def _match(self, widget_id: str) -> Optional[WidgetRoute]:
        for route in self.routes:
            if route.predicate(widget_id):
                return route
        return None

    def _widget_scope(self, widget_id: str, route: WidgetRoute) -> str:
        definition = self.catalog.find_by_id(widget_id)
        return definition.scope if definition else route.scope

    @staticmethod
    async def _compare_stub(
        widget_id: str, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetResponse:
        return WidgetResponse.empty(widget_id, COMPARE_DISABLED, filters=filters)


# ── Singleton ────────────────────────────────────────────────────
widget_dispatcher = WidgetDispatcher()
