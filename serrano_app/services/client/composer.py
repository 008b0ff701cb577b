"""
DashboardComposer — client-side composition of the dashboard.

Reconciles catalog + layout + scope into the ordered list of cards to
render, fetches one envelope per card plus one KPI batch, and keeps an
independent ``{loading, data}`` state per card.

Concurrency rules:
  - ``refresh()`` cancels every in-flight task before starting new ones.
  - Every fetch takes a number from one global, monotonic generation
    counter.  A result is committed only if its generation is still the
    latest one issued for that card; anything older is discarded, even
    if it arrives last.
  - Removing a card drops its state and its generation entry.
  - Size changes persist the layout and never refetch.

Usage::

    store = LayoutStore(JsonFileLayoutStorage(".dashboard"))
    composer = DashboardComposer(store, DashboardApiClient())
    await composer.refresh()
    cards = composer.cards()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from serrano_app.config.widget_registry import SIZE_COLUMN_SPANS
from serrano_app.services.client.api_client import KPI_ERROR, WIDGET_ERROR
from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.layout.store import DashboardLayout, LayoutStore
from serrano_app.services.render.chart_selector import select_chart
from serrano_app.services.widgets.base import WidgetDefinition, scopes_compatible
from serrano_app.services.widgets.catalog import WidgetCatalog

logger = logging.getLogger(__name__)

KPI_SLOT = "__kpis__"
FAILED_CARD_MESSAGE = "Não foi possível carregar este widget."


class WidgetSource(Protocol):
    async def fetch_widget(
        self, widget_id: str, scope: str, filters: Optional[WidgetFilters] = None,
    ) -> Dict[str, Any]:
        ...

    async def fetch_kpis(self, scope: str) -> Dict[str, Any]:
        ...


@dataclass
class WidgetState:
    """Per-card state. ``data`` keeps the previous envelope while reloading."""
    loading: bool = False
    data: Optional[Dict[str, Any]] = None
    generation: int = 0


@dataclass
class ActiveWidget:
    definition: WidgetDefinition
    size: str

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def column_span(self) -> int:
        return SIZE_COLUMN_SPANS.get(self.size, SIZE_COLUMN_SPANS["md"])


class DashboardComposer:
    """One instance per dashboard session; the layout store is injected."""

    def __init__(
        self,
        store: LayoutStore,
        client: WidgetSource,
        catalog: Optional[WidgetCatalog] = None,
        filters: Optional[WidgetFilters] = None,
    ) -> None:
        self.store = store
        self.client = client
        self.catalog = catalog or store.catalog
        self.filters = filters or WidgetFilters()

        self.states: Dict[str, WidgetState] = {}
        self.kpis = WidgetState()

        self._generation = 0
        self._latest: Dict[str, int] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    # ── Derived state ────────────────────────────────────────

    @property
    def layout(self) -> DashboardLayout:
        return self.store.layout

    @property
    def scope(self) -> str:
        return self.layout.scope

    def active_widgets(self) -> List[ActiveWidget]:
        """
        ``order`` ∩ ``enabled`` ∩ catalog, KPIs excluded (they live in
        the KPI strip), filtered by scope compatibility.
        """
        layout = self.layout
        enabled = set(layout.enabled)
        seen = set()
        active: List[ActiveWidget] = []

        for widget_id in layout.order:
            if widget_id in seen or widget_id not in enabled:
                continue
            seen.add(widget_id)
            definition = self.catalog.find_by_id(widget_id)
            if definition is None or definition.is_kpi:
                continue
            if not scopes_compatible(definition.scope, layout.scope):
                continue
            active.append(ActiveWidget(definition, self.store.effective_size(widget_id)))

        return active

    def state(self, widget_id: str) -> Optional[WidgetState]:
        return self.states.get(widget_id)

    # ── Generations ──────────────────────────────────────────

    def _begin(self, slot: str) -> int:
        self._generation += 1
        self._latest[slot] = self._generation
        return self._generation

    def _is_current(self, slot: str, generation: int) -> bool:
        return self._latest.get(slot) == generation

    # ── Fetching ─────────────────────────────────────────────

    async def load_widget(self, widget_id: str) -> None:
        generation = self._begin(widget_id)
        previous = self.states.get(widget_id)
        self.states[widget_id] = WidgetState(
            loading=True,
            data=previous.data if previous else None,
            generation=generation,
        )

        try:
            envelope = await self.client.fetch_widget(widget_id, self.scope, self.filters)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(f"[DashboardComposer] Fetch failed for '{widget_id}': {exc}")
            envelope = {"ok": False, "widgetId": widget_id, "error": WIDGET_ERROR}

        if not self._is_current(widget_id, generation):
            logger.debug(
                f"[DashboardComposer] Discarding stale result for '{widget_id}' "
                f"(generation {generation})"
            )
            return

        if not envelope.get("ok"):
            logger.warning(
                f"[DashboardComposer] Widget '{widget_id}' failed: {envelope.get('error')}"
            )
        self.states[widget_id] = WidgetState(loading=False, data=envelope, generation=generation)

    async def load_kpis(self) -> None:
        generation = self._begin(KPI_SLOT)
        self.kpis = WidgetState(loading=True, data=self.kpis.data, generation=generation)

        try:
            result = await self.client.fetch_kpis(self.scope)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(f"[DashboardComposer] KPI fetch failed: {exc}")
            result = {"ok": False, "error": KPI_ERROR}

        if not self._is_current(KPI_SLOT, generation):
            logger.debug(f"[DashboardComposer] Discarding stale KPIs (generation {generation})")
            return
        self.kpis = WidgetState(loading=False, data=result, generation=generation)

    def start_refresh(self) -> List[asyncio.Task]:
        """Cancel in-flight work, prune dropped cards, launch new fetches."""
        self._cancel_inflight()
        active_ids = [w.id for w in self.active_widgets()]
        self._prune(active_ids)

        for widget_id in active_ids:
            self._tasks[widget_id] = asyncio.create_task(self.load_widget(widget_id))
        self._tasks[KPI_SLOT] = asyncio.create_task(self.load_kpis())
        return list(self._tasks.values())

    async def refresh(self) -> None:
        tasks = self.start_refresh()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _cancel_inflight(self) -> None:
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        self._tasks.clear()

    def _prune(self, active_ids: List[str]) -> None:
        keep = set(active_ids)
        for widget_id in list(self.states):
            if widget_id not in keep:
                del self.states[widget_id]
                self._latest.pop(widget_id, None)

    async def close(self) -> None:
        tasks = [t for t in self._tasks.values() if not t.done()]
        self._cancel_inflight()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ── Layout mutations ─────────────────────────────────────

    async def set_scope(self, scope: str) -> None:
        self.store.set_scope(scope)
        await self.refresh()

    async def set_filters(self, filters: WidgetFilters) -> None:
        self.filters = filters
        await self.refresh()

    async def toggle_widget(self, widget_id: str) -> None:
        self.store.toggle(widget_id)
        await self.refresh()

    async def reset_layout(self) -> None:
        self.store.reset()
        await self.refresh()

    def reorder(self, order: List[str]) -> None:
        """Order only changes presentation; loaded data is kept."""
        self.store.reorder(order)

    def set_size(self, widget_id: str, size: str) -> None:
        self.store.set_size(widget_id, size)

    # ── Presentation ─────────────────────────────────────────

    def cards(self) -> List[Dict[str, Any]]:
        """
        Render-ready cards in display order.  Error envelopes and empty
        payloads both render as a neutral message card.
        """
        out: List[Dict[str, Any]] = []
        for widget in self.active_widgets():
            state = self.states.get(widget.id) or WidgetState(loading=True)
            card: Dict[str, Any] = {
                "id": widget.id,
                "title": widget.definition.title,
                "size": widget.size,
                "span": widget.column_span,
                "loading": state.loading,
            }
            envelope = state.data
            if envelope is None:
                card["status"] = "loading"
            elif not envelope.get("ok"):
                card["status"] = "empty"
                card["message"] = FAILED_CARD_MESSAGE
            else:
                chart = select_chart(envelope.get("payload"), widget.size)
                card["status"] = "empty" if chart.chart_type == "empty" else "ready"
                card["chart"] = chart.to_dict()
            out.append(card)
        return out
