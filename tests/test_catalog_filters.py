"""
Tests for the Widget Catalog and Filter Parsing
===============================================
"""

from datetime import date

from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.filters.engine import filter_engine, parse_iso_date, parse_list
from serrano_app.services.widgets.base import normalize_scope, scopes_compatible
from serrano_app.services.widgets.catalog import WidgetCatalog, widget_catalog


# ── Catalog ──────────────────────────────────────────────────────

def test_catalog_lookup():
    definition = widget_catalog.find_by_id("serrano.age_distribution")
    assert definition is not None
    assert definition.scope == "serrano"
    assert definition.default_size == "md"
    assert widget_catalog.find_by_id("ghost.widget") is None
    assert "overview.geo_map" in widget_catalog
    assert len(widget_catalog.list_all()) == len(set(widget_catalog.ids()))


def test_catalog_to_dict_uses_wire_keys():
    data = widget_catalog.find_by_id("overview.geo_map").to_dict()
    assert data["defaultEnabled"] is True
    assert data["defaultSize"] == "lg"
    assert isinstance(data["keywords"], list)


def test_list_by_scope():
    market_ids = {d.id for d in widget_catalog.list_by_scope("market")}
    assert "market.fee_distribution" in market_ids
    assert "overview.geo_map" in market_ids
    assert "serrano.age_distribution" not in market_ids
    assert len(widget_catalog.list_by_scope("both")) == len(widget_catalog.list_all())


def test_picker_entries_exclude_kpis_and_foreign_groups():
    serrano = widget_catalog.picker_entries("serrano")
    assert all(not d.is_kpi for d in serrano)
    assert not any(d.group == "market" for d in serrano)
    market = widget_catalog.picker_entries("market")
    assert not any(d.group == "serrano" for d in market)


def test_custom_catalog_entries():
    catalog = WidgetCatalog([{
        "id": "serrano.only", "title": "Only", "group": "serrano",
        "scope": "serrano", "default_enabled": True, "default_size": "sm",
    }])
    assert catalog.ids() == ["serrano.only"]
    assert catalog.default_enabled_ids() == ["serrano.only"]


def test_scope_helpers():
    assert normalize_scope(" Market ") == "market"
    assert normalize_scope("roster") == "both"
    assert normalize_scope(None) == "both"
    assert scopes_compatible("both", "market")
    assert scopes_compatible("serrano", "both")
    assert not scopes_compatible("market", "serrano")


def test_search_matches_keywords_title_and_description():
    def ids(**kwargs):
        return [d.id for d in widget_catalog.search("both", **kwargs)]

    assert ids(query="empresário") == ["serrano.representation_ranking"]
    assert ids(query="MAPA de") == ["overview.geo_map"]
    assert ids(query="arrecadaram") == ["market.top_buyers_sellers"]


def test_search_by_group_and_query():
    compare = [d.id for d in widget_catalog.search("both", group="compare")]
    assert compare == ["compare.position_share_serrano_vs_market", "compare.avg_age_by_position"]

    ages = [d.id for d in widget_catalog.search("both", query="idade", group="serrano")]
    assert ages == ["serrano.age_distribution", "serrano.age_vs_value_scatter"]

    assert widget_catalog.search("both", group="finance-ish") == []


def test_search_respects_picker_scope():
    ids = [d.id for d in widget_catalog.search("market", query="idade")]
    assert ids == ["market.age_vs_fee_scatter", "compare.avg_age_by_position"]


def test_blank_search_returns_picker_entries():
    expected = widget_catalog.picker_entries("serrano")
    assert widget_catalog.search("serrano") == expected
    assert widget_catalog.search("serrano", query="   ", group="all") == expected


# ── Filters ──────────────────────────────────────────────────────

def test_parse_list():
    assert parse_list("a, b,,c ") == ["a", "b", "c"]
    assert parse_list("") == []
    assert parse_list(None) == []


def test_parse_iso_date():
    assert parse_iso_date("2024-02-29") == date(2024, 2, 29)
    assert parse_iso_date("2023-02-29") is None
    assert parse_iso_date("2024-2-1") is None
    assert parse_iso_date(20240101) is None


def test_filter_engine_parses_all_keys():
    filters = filter_engine.parse({
        "period.from": "2023-01-01",
        "periodTo": "2023-12-31",
        "position": "Atacante, Meia",
        "club": "Club1",
        "league": "",
    })
    assert filters.period_from == date(2023, 1, 1)
    assert filters.period_to == date(2023, 12, 31)
    assert filters.position == ["Atacante", "Meia"]
    assert filters.club == ["Club1"]
    assert filters.league == []


def test_filter_engine_ignores_invalid_dates():
    filters = filter_engine.parse({"from": "yesterday", "to": "2023-13-01"})
    assert not filters.has_period
    assert filters.is_empty


def test_filters_echo_and_query_params():
    filters = WidgetFilters(period_from=date(2024, 1, 1), country=["Portugal", "Brasil"])
    assert filters.to_dict() == {
        "period": {"from": "2024-01-01", "to": None},
        "country": ["Portugal", "Brasil"],
    }
    params = filters.to_query_params()
    assert params == {"from": "2024-01-01", "country": "Portugal,Brasil"}
    assert filter_engine.parse(params) == filters
    assert filters.replace(country=[]).to_dict() == {"period": {"from": "2024-01-01", "to": None}}
