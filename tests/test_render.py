"""
Tests for the Renderer Heuristics
=================================

Tests for chart selection (label/series picking, dual axis, ticks) and
the display formatters.
"""

import pytest

from serrano_app.services.render.chart_selector import (
    build_integer_ticks,
    build_year_ticks,
    is_money_key,
    pick_label_key,
    select_chart,
)
from serrano_app.services.render.formatting import (
    format_compact,
    format_currency,
    format_kpi_value,
    format_money_axis,
    format_number,
    format_percent,
)


def bar(data, label_key=None, series_keys=None, kind="bar"):
    payload = {"kind": kind, "data": data}
    if label_key:
        payload["labelKey"] = label_key
    if series_keys:
        payload["seriesKeys"] = series_keys
    return payload


# ── Key classification ───────────────────────────────────────────

@pytest.mark.parametrize(
    "key, money",
    [
        ("value", True), ("avg_fee", True), ("buyer_total", True),
        ("ticket_medio", True), ("players", False), ("deals", False),
    ],
)
def test_is_money_key(key, money):
    assert is_money_key(key) is money


def test_pick_label_key_prefers_known_names():
    assert pick_label_key({"name": "x", "position": "Meia", "players": 1}) == "position"
    assert pick_label_key({"name": "x", "players": 1}) == "name"
    assert pick_label_key({"players": 1}) is None


# ── Cartesian charts ─────────────────────────────────────────────

def test_dual_axis_for_one_money_and_one_count_series():
    spec = select_chart(bar(
        [{"position": "Atacante", "avg_fee": 6_000_000, "deals": 2}],
        "position", ["avg_fee", "deals"],
    ))
    assert spec.dual_axis is True
    assert spec.axes["y"].fmt == "currency_compact"
    assert spec.axes["y"].width == 120
    assert (spec.axes["y1"].position, spec.axes["y1"].width) == ("right", 72)
    assert [(s.key, s.axis) for s in spec.series] == [("avg_fee", "y"), ("deals", "y1")]


def test_two_money_series_share_one_axis():
    spec = select_chart(bar(
        [{"club": "Club1", "buyer_total": 10, "seller_total": 0}],
        "club", ["buyer_total", "seller_total"],
    ))
    assert spec.dual_axis is False
    assert set(spec.axes) == {"x", "y"}
    assert spec.axes["y"].fmt == "currency_compact"


def test_count_series_axis():
    spec = select_chart(bar([{"bucket": "≤11", "players": 3}], "bucket", ["players"]))
    assert spec.axes["y"].fmt == "number"
    assert spec.axes["y"].width == 60
    assert spec.axes["x"].rotate_labels is True


def test_rotation_only_for_short_category_bars():
    rows = [{"club": f"Club{i}", "deals": i} for i in range(15)]
    assert select_chart(bar(rows, "club", ["deals"])).axes["x"].rotate_labels is False
    line = select_chart(bar(rows[:3], "club", ["deals"], kind="line"))
    assert line.axes["x"].rotate_labels is False


def test_legacy_payload_is_sniffed():
    spec = select_chart(bar([{"name": "Ana", "players": 3, "fee": 2.0}]))
    assert spec.label_key == "name"
    assert [s.key for s in spec.series] == ["fee", "players"]
    assert spec.dual_axis is True


def test_year_ticks_on_monthly_series():
    rows = [{"period": p, "deals": 1} for p in ("2023-01", "2023-03", "2024-01", "2024-02")]
    spec = select_chart(bar(rows, "period", ["deals"], kind="line"))
    x = spec.axes["x"]
    assert x.ticks == ["2023-01", "2024-01"]
    assert x.tick_labels == ["2023", "2024"]
    assert x.rotate_labels is False
    assert build_year_ticks(rows, "bucket") == []


def test_chart_to_dict():
    spec = select_chart(bar(
        [{"period": "2023-01", "value": 7_000_000}, {"period": "2023-02", "value": 0}],
        "period", ["value"],
    ), size="lg")
    data = spec.to_dict()
    assert data["chart_type"] == "bar"
    assert data["size"] == "lg"
    assert data["labels"] == ["2023-01", "2023-02"]
    dataset = data["datasets"][0]
    assert dataset["data"] == [7_000_000, 0]
    assert dataset["formatted"] == ["€7,000,000.00", "€0.00"]
    assert data["options"]["scales"]["y"]["format"] == "currency_compact"


def test_chart_without_numeric_series_is_empty():
    spec = select_chart(bar([{"club": "A", "country": "BR"}]))
    assert spec.chart_type == "empty"


# ── Scatter ──────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "size, expected",
    [
        ("lg", list(range(17, 32))),
        ("md", [17, 19, 21, 23, 25, 27, 29, 31]),
        ("sm", [17, 20, 23, 26, 29, 31]),
    ],
)
def test_integer_ticks_follow_size(size, expected):
    assert build_integer_ticks(17, 31, size) == expected


def test_integer_ticks_degenerate_range():
    assert build_integer_ticks(20, 20) == [20]


def test_scatter_spec():
    rows = [
        {"age": 18, "value": 1_000_000, "label": "A"},
        {"age": 30, "value": 3_000_000, "label": "B"},
        {"age": None, "value": 2_000_000, "label": "C"},
    ]
    spec = select_chart(bar(rows, "label", ["age", "value"], kind="scatter"), size="md")
    assert spec.chart_type == "scatter"
    assert spec.axes["x"].ticks == build_integer_ticks(17, 31, "md")
    assert spec.axes["y"].fmt == "currency_compact"
    points = spec.to_dict()["datasets"][0]["data"]
    assert points == [
        {"x": 18, "y": 1_000_000, "tooltip": "A"},
        {"x": 30, "y": 3_000_000, "tooltip": "B"},
    ]


# ── KPI, geo, empty ──────────────────────────────────────────────

def test_kpi_display():
    money = select_chart({"kind": "kpi", "data": {"label": "Valor", "value": 4_200_000, "unit": "EUR"}})
    assert money.display == "€4,200,000.00"
    count = select_chart({"kind": "kpi", "data": {"label": "Jogadores", "value": 1234}})
    assert count.to_dict()["display"] == "1,234"
    missing = select_chart({"kind": "kpi", "data": {"label": "Idade", "value": None}})
    assert missing.display == "—"


def test_geo_ranking():
    spec = select_chart({"kind": "geo_map", "data": {
        "counts": {"byCountry": {"PT": 1, "BR": 3}, "byStateBR": {"RJ": 2, "—": 1}, "missing": 1},
        "players": {},
    }})
    data = spec.to_dict()
    assert data["chart_type"] == "geo"
    assert data["countries"] == [{"code": "BR", "players": 3}, {"code": "PT", "players": 1}]
    assert data["states_br"][0] == {"code": "RJ", "players": 2}
    assert (data["missing"], data["total"]) == (1, 4)


@pytest.mark.parametrize(
    "payload",
    [None, "garbage", {"kind": "bar", "data": []}, {"kind": "pie", "data": [{"a": 1}]}],
)
def test_unusable_payloads_render_empty(payload):
    assert select_chart(payload).chart_type == "empty"


def test_empty_payload_keeps_reason_and_hint():
    data = select_chart({"kind": "empty", "reason": "Nada", "hint": "Tente outro filtro"}).to_dict()
    assert data == {
        "chart_type": "empty", "size": "md", "message": "Nada", "hint": "Tente outro filtro",
    }


# ── Formatting ───────────────────────────────────────────────────

def test_formatters():
    assert format_currency(4_200_000) == "€4,200,000.00"
    assert format_currency(-12.5) == "-€12.50"
    assert format_currency(10, "BRL") == "R$10.00"
    assert format_money_axis(4_200_000) == "€4.2M"
    assert format_money_axis(500_000) == "€500K"
    assert format_compact(1500) == "1.5K"
    assert format_compact(950) == "950"
    assert format_compact(2_000_000_000) == "2B"
    assert format_number(1_234_567) == "1,234,567"
    assert format_number(19.5) == "19.5"
    assert format_percent(0.42) == "42.0%"
    assert format_kpi_value(0.5, "%") == "50.0%"
    assert format_kpi_value("nope") == "—"
    assert format_currency(float("nan")) == "—"
