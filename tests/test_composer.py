"""
Tests for the Dashboard Composer
================================

Tests for the active widget list, stale-response rejection, refresh
cancellation, state pruning and card rendering.  The API is replaced by
fakes; ``ControlledClient`` parks every fetch on an ``asyncio.Event`` so
tests decide the order in which responses arrive.
"""

import asyncio

import pytest

from serrano_app.services.client.composer import (
    FAILED_CARD_MESSAGE,
    DashboardComposer,
)
from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.layout.storage import MemoryLayoutStorage
from serrano_app.services.layout.store import DashboardLayout, LayoutStore

AGE = "serrano.age_distribution"
POSITIONS = "serrano.position_distribution"
DEALS = "market.deals_by_month"
GEO = "overview.geo_map"


def bar_envelope(widget_id, marker):
    return {
        "ok": True,
        "widgetId": widget_id,
        "generatedAt": "2024-01-01T00:00:00Z",
        "payload": {
            "kind": "bar",
            "data": [{"bucket": "≤11", "players": marker}],
            "labelKey": "bucket",
            "seriesKeys": ["players"],
        },
    }


class PendingCall:
    def __init__(self, widget_id, scope):
        self.widget_id = widget_id
        self.scope = scope
        self.gate = asyncio.Event()
        self.response = None

    def resolve(self, response):
        self.response = response
        self.gate.set()


class ControlledClient:
    """Every fetch waits until the test resolves it."""

    def __init__(self):
        self.calls = []

    async def fetch_widget(self, widget_id, scope, filters=None):
        call = PendingCall(widget_id, scope)
        self.calls.append(call)
        await call.gate.wait()
        return call.response

    async def fetch_kpis(self, scope):
        return {"ok": True, "scope": scope, "kpis": {}}

    def calls_for(self, widget_id):
        return [c for c in self.calls if c.widget_id == widget_id]


class ImmediateClient:
    """Answers at once; records every request."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requests = []
        self.kpi_requests = []

    async def fetch_widget(self, widget_id, scope, filters=None):
        self.requests.append((widget_id, scope, filters))
        return self.responses.get(widget_id) or bar_envelope(widget_id, 1)

    async def fetch_kpis(self, scope):
        self.kpi_requests.append(scope)
        return {"ok": True, "scope": scope, "kpis": {"market.deals_count": {"value": 4}}}


class RaisingClient(ImmediateClient):
    async def fetch_widget(self, widget_id, scope, filters=None):
        raise RuntimeError("socket closed")


def make_composer(client, enabled, scope="both", order=None):
    store = LayoutStore(MemoryLayoutStorage())
    store.save(DashboardLayout(scope=scope, enabled=list(enabled), order=list(order or enabled)))
    return DashboardComposer(store, client)


async def settle(predicate, ticks=100):
    for _ in range(ticks):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never reached")


# ── Active widgets ───────────────────────────────────────────────

def test_active_widgets_follow_order_scope_and_catalog():
    composer = make_composer(
        ImmediateClient(),
        enabled=[AGE, DEALS, GEO, "kpi.serrano.avg_age", "ghost.widget"],
        order=[DEALS, GEO, AGE, "kpi.serrano.avg_age"],
        scope="serrano",
    )
    assert [w.id for w in composer.active_widgets()] == [GEO, AGE]

    composer.store.set_scope("both")
    assert [w.id for w in composer.active_widgets()] == [DEALS, GEO, AGE]


def test_active_widget_sizes():
    composer = make_composer(ImmediateClient(), enabled=[GEO, AGE])
    composer.set_size(AGE, "sm")
    widgets = {w.id: w for w in composer.active_widgets()}
    assert (widgets[GEO].size, widgets[GEO].column_span) == ("lg", 12)
    assert (widgets[AGE].size, widgets[AGE].column_span) == ("sm", 4)


# ── Stale responses ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_older_response_arriving_last_is_discarded():
    client = ControlledClient()
    composer = make_composer(client, enabled=[AGE])

    first = asyncio.create_task(composer.load_widget(AGE))
    await settle(lambda: len(client.calls_for(AGE)) == 1)
    second = asyncio.create_task(composer.load_widget(AGE))
    await settle(lambda: len(client.calls_for(AGE)) == 2)
    older, newer = client.calls_for(AGE)

    newer.resolve(bar_envelope(AGE, "B"))
    await second
    assert composer.state(AGE).data["payload"]["data"][0]["players"] == "B"
    assert composer.state(AGE).loading is False

    older.resolve(bar_envelope(AGE, "A"))
    await first
    assert composer.state(AGE).data["payload"]["data"][0]["players"] == "B"


@pytest.mark.asyncio
async def test_reload_keeps_previous_data_while_loading():
    client = ControlledClient()
    composer = make_composer(client, enabled=[AGE])

    task = asyncio.create_task(composer.load_widget(AGE))
    await settle(lambda: len(client.calls) == 1)
    client.calls[0].resolve(bar_envelope(AGE, 1))
    await task

    task = asyncio.create_task(composer.load_widget(AGE))
    await settle(lambda: len(client.calls) == 2)
    state = composer.state(AGE)
    assert state.loading is True
    assert state.data["payload"]["data"][0]["players"] == 1

    client.calls[1].resolve(bar_envelope(AGE, 2))
    await task
    assert composer.state(AGE).data["payload"]["data"][0]["players"] == 2


@pytest.mark.asyncio
async def test_scope_change_cancels_in_flight_fetches():
    client = ControlledClient()
    composer = make_composer(client, enabled=[AGE, GEO])

    old_tasks = composer.start_refresh()
    await settle(lambda: len(client.calls) == 2)

    composer.store.set_scope("serrano")
    new_tasks = composer.start_refresh()
    await settle(lambda: len(client.calls) == 4)

    # Old widget fetches were cancelled and are never committed
    await asyncio.gather(*old_tasks, return_exceptions=True)
    assert all(t.cancelled() for t in old_tasks[:2])

    for call in client.calls[2:]:
        call.resolve(bar_envelope(call.widget_id, call.scope))
    await asyncio.gather(*new_tasks)

    for call in client.calls[:2]:
        call.resolve(bar_envelope(call.widget_id, "stale"))
    await asyncio.sleep(0)

    for widget_id in (AGE, GEO):
        assert composer.state(widget_id).data["payload"]["data"][0]["players"] == "serrano"
    assert composer.kpis.data["scope"] == "serrano"


# ── Refresh & mutations ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_refresh_loads_widgets_and_kpis():
    client = ImmediateClient()
    composer = make_composer(client, enabled=[GEO, AGE, DEALS], scope="serrano")
    composer.filters = WidgetFilters(position=["Meia"])
    await composer.refresh()

    assert [r[0] for r in client.requests] == [GEO, AGE]
    assert all(r[1] == "serrano" for r in client.requests)
    assert all(r[2].position == ["Meia"] for r in client.requests)
    assert client.kpi_requests == ["serrano"]
    assert composer.state(GEO).loading is False
    assert composer.kpis.data["ok"] is True


@pytest.mark.asyncio
async def test_disabling_a_widget_drops_its_state():
    client = ImmediateClient()
    composer = make_composer(client, enabled=[GEO, AGE])
    await composer.refresh()
    assert composer.state(AGE) is not None

    await composer.toggle_widget(AGE)
    assert composer.state(AGE) is None
    assert AGE not in composer._latest
    assert composer.state(GEO) is not None


@pytest.mark.asyncio
async def test_scope_switch_prunes_incompatible_widgets():
    client = ImmediateClient()
    composer = make_composer(client, enabled=[GEO, AGE, DEALS])
    await composer.refresh()
    assert composer.state(DEALS) is not None

    await composer.set_scope("serrano")
    assert composer.state(DEALS) is None
    assert composer.scope == "serrano"
    assert composer.store.load_or_default().scope == "serrano"


@pytest.mark.asyncio
async def test_size_change_does_not_refetch():
    client = ImmediateClient()
    composer = make_composer(client, enabled=[GEO, AGE])
    await composer.refresh()
    fetched = len(client.requests)

    composer.set_size(AGE, "lg")
    composer.reorder([AGE, GEO])

    assert len(client.requests) == fetched
    assert composer.store.layout.sizes == {AGE: "lg"}
    assert [c["id"] for c in composer.cards()] == [AGE, GEO]
    assert composer.cards()[0]["span"] == 12


@pytest.mark.asyncio
async def test_set_filters_and_reset_refetch():
    client = ImmediateClient()
    composer = make_composer(client, enabled=[AGE])
    await composer.set_filters(WidgetFilters(agency=["Beta"]))
    assert client.requests[-1][2].agency == ["Beta"]

    await composer.reset_layout()
    assert composer.layout == composer.store.default_layout()
    assert {r[0] for r in client.requests[1:]} == {w.id for w in composer.active_widgets()}


@pytest.mark.asyncio
async def test_client_exception_becomes_error_state():
    composer = make_composer(RaisingClient(), enabled=[AGE])
    await composer.refresh()
    assert composer.state(AGE).data == {
        "ok": False, "widgetId": AGE, "error": "Erro ao carregar widget.",
    }


@pytest.mark.asyncio
async def test_close_cancels_pending_work():
    client = ControlledClient()
    composer = make_composer(client, enabled=[AGE])
    tasks = composer.start_refresh()
    await settle(lambda: len(client.calls) == 1)

    await composer.close()
    assert tasks[0].cancelled()
    assert composer.state(AGE).loading is True


# ── Cards ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_error_and_empty_render_as_neutral_cards():
    client = ImmediateClient({
        AGE: {"ok": False, "widgetId": AGE, "error": "Erro ao carregar dados do Serrano."},
        POSITIONS: {
            "ok": True, "widgetId": POSITIONS, "generatedAt": "x",
            "payload": {"kind": "empty", "reason": "Nenhum jogador."},
        },
    })
    composer = make_composer(client, enabled=[AGE, POSITIONS, GEO])
    await composer.refresh()
    cards = {c["id"]: c for c in composer.cards()}

    assert cards[AGE]["status"] == "empty"
    assert cards[AGE]["message"] == FAILED_CARD_MESSAGE
    assert "Erro ao carregar dados" not in str(cards[AGE])
    assert cards[POSITIONS]["status"] == "empty"
    assert cards[POSITIONS]["chart"]["message"] == "Nenhum jogador."
    assert cards[GEO]["status"] == "ready"
    assert cards[GEO]["chart"]["chart_type"] == "bar"


def test_cards_before_any_fetch_are_loading():
    composer = make_composer(ImmediateClient(), enabled=[AGE])
    assert composer.cards() == [{
        "id": AGE,
        "title": composer.catalog.find_by_id(AGE).title,
        "size": "md",
        "span": 6,
        "loading": True,
        "status": "loading",
    }]
