"""
Tests for the Geo Loader
========================

Tests for the overview map aggregate, both the pure aggregation step
and the loader against the seeded database.
"""

import pytest

from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.widgets.base import LoadContext
from serrano_app.services.widgets.loaders.geo import GeoLoader, build_geo_aggregate


class FailingDb:
    """Database manager whose sessions cannot be opened."""

    def get_session(self):
        raise ConnectionError("database offline")


def test_build_geo_aggregate_counts():
    rows = [
        {"id": "1", "name": "A", "club_id": "c1", "club_name": "X",
         "country_code": "br", "state_code": "sp"},
        {"id": "2", "name": "B", "club_id": "c2", "club_name": "Y",
         "country_code": "BR", "state_code": None},
        {"id": "3", "name": "C", "club_id": "c3", "club_name": "Z", "country_code": "AR"},
        {"id": "4", "name": "D", "club_id": None},
        {"id": "5", "name": "E", "club_id": "c4", "country_code": " "},
    ]
    aggregate = build_geo_aggregate(rows)
    assert aggregate["counts"] == {
        "byCountry": {"BR": 2, "AR": 1},
        "byStateBR": {"SP": 1, "—": 1},
        "missing": 2,
    }
    assert [p["id"] for p in aggregate["players"]["byCountry"]["BR"]] == ["1", "2"]
    assert aggregate["players"]["byStateBR"]["SP"][0]["club"] == {
        "id": "c1", "name": "X", "logoUrl": None,
    }


def test_build_geo_aggregate_absolute_urls():
    rows = [{
        "id": "1", "name": "A", "photo_url": "/media/a.png",
        "club_id": "c1", "club_name": "X", "logo_url": "https://cdn.example/x.png",
        "country_code": "PT",
    }]
    mini = build_geo_aggregate(rows, "https://club.example/")["players"]["byCountry"]["PT"][0]
    assert mini["photoUrl"] == "https://club.example/media/a.png"
    assert mini["club"]["logoUrl"] == "https://cdn.example/x.png"


@pytest.mark.asyncio
async def test_geo_map_from_database(seeded_db):
    response = await GeoLoader(seeded_db).load(
        "overview.geo_map", WidgetFilters(), LoadContext(origin="http://test"),
    )
    result = response.to_dict()
    assert result["ok"] is True
    assert result["payload"]["kind"] == "geo_map"

    data = result["payload"]["data"]
    assert data["counts"] == {
        "byCountry": {"BR": 3, "PT": 1},
        "byStateBR": {"RJ": 2, "—": 1},
        "missing": 1,
    }
    ana = next(p for p in data["players"]["byStateBR"]["RJ"] if p["id"] == "p1")
    assert ana["photoUrl"] == "http://test/media/p1.png"
    assert ana["club"]["logoUrl"] == "http://test/media/serrano.png"


@pytest.mark.asyncio
async def test_geo_map_without_players_is_empty(db):
    result = (await GeoLoader(db).load("overview.geo_map", WidgetFilters())).to_dict()
    assert result["ok"] is True
    assert result["payload"]["kind"] == "empty"


@pytest.mark.asyncio
async def test_geo_failure_degrades_to_empty():
    result = (await GeoLoader(FailingDb()).load("overview.geo_map", WidgetFilters())).to_dict()
    assert result["ok"] is True
    assert result["payload"] == {
        "kind": "empty",
        "reason": "Não foi possível carregar os dados do mapa.",
    }
    assert "offline" not in str(result)


@pytest.mark.asyncio
async def test_unknown_overview_widget(seeded_db):
    result = (await GeoLoader(seeded_db).load("overview.timeline", WidgetFilters())).to_dict()
    assert result["payload"]["reason"] == "Widget não reconhecido."
