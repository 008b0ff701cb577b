"""
ChartSelector — payload + size hint → chart specification.

Single Responsibility: decide HOW a widget payload is drawn (chart type,
label axis, series, axis formats, ticks) without drawing anything.  The
result serializes to a Chart.js-style dict for the frontend.

Heuristics:
  - Label key: the payload's ``labelKey``; otherwise the first key of
    ``LABEL_KEY_PRIORITY`` present as a string, else the first
    non-numeric field of the sample record.
  - Series: the payload's ``seriesKeys``; otherwise every finite-number
    field of the sample record.
  - Monetary series: key contains a ``MONEY_KEYWORDS`` entry.
  - Dual axis: exactly one monetary + one count series.
  - ``YYYY-MM`` periods: one tick per January, labelled with the year.
  - Scatter: integer x ticks whose density follows the size hint.

Usage::

    from serrano_app.services.render.chart_selector import select_chart

    spec = select_chart(envelope["payload"], size="lg")
    spec.to_dict()
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from serrano_app.services.render.formatting import (
    format_currency,
    format_kpi_value,
    format_number,
)

LABEL_KEY_PRIORITY = (
    "period", "bucket", "position", "player", "club", "agency",
    "label", "type", "country", "league",
)

MONEY_KEYWORDS = ("valor", "value", "fee", "total", "volume", "avg", "ticket")

ROTATE_LABELS_MAX_ROWS = 14
MAX_TICKS = {"sm": 6, "md": 8, "lg": 10}
LG_ALL_TICKS_RANGE = 18

Y_WIDTH_MONEY = 120
Y_WIDTH_COUNT = 60
Y_WIDTH_RIGHT = 72

PALETTE = [
    "#3b82f6", "#22c55e", "#ef4444", "#f59e0b",
    "#8b5cf6", "#ec4899", "#14b8a6", "#f97316",
]

_YEAR_MONTH = re.compile(r"^\d{4}-\d{2}$")


# ─────────────────────────────────────────────────────────────────
#  SHAPE SNIFFING
# ─────────────────────────────────────────────────────────────────

def is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def pick_label_key(sample: Dict[str, Any]) -> Optional[str]:
    for key in LABEL_KEY_PRIORITY:
        if isinstance(sample.get(key), str):
            return key
    for key, value in sample.items():
        if not is_finite_number(value):
            return key
    return None


def pick_numeric_keys(sample: Dict[str, Any]) -> List[str]:
    return [key for key, value in sample.items() if is_finite_number(value)]


def is_money_key(key: str) -> bool:
    lowered = key.lower()
    return any(word in lowered for word in MONEY_KEYWORDS)


def format_by_key(value: Any, key: str) -> str:
    """Tooltip text: full currency for monetary keys."""
    return format_currency(value) if is_money_key(key) else format_number(value)


# ─────────────────────────────────────────────────────────────────
#  TICKS
# ─────────────────────────────────────────────────────────────────

def build_year_ticks(rows: List[Dict[str, Any]], label_key: Optional[str]) -> List[str]:
    """January periods (``YYYY-01``) of a ``YYYY-MM`` series, sorted and unique."""
    if label_key != "period":
        return []
    periods = {
        str(row.get(label_key, ""))
        for row in rows
        if _YEAR_MONTH.match(str(row.get(label_key, "")))
    }
    return sorted(p for p in periods if p.endswith("-01"))


def year_tick_label(period: str) -> str:
    return period[:4]


def build_integer_ticks(minimum: float, maximum: float, size: str = "md") -> List[int]:
    """Integer ticks over ``[floor(min), ceil(max)]`` thinned by size."""
    lo = math.floor(minimum)
    hi = math.ceil(maximum)
    span = hi - lo
    if span <= 0:
        return [lo]

    if size == "lg" and span <= LG_ALL_TICKS_RANGE:
        return list(range(lo, hi + 1))

    max_ticks = MAX_TICKS.get(size, MAX_TICKS["md"])
    step = max(1, math.ceil(span / max_ticks))
    ticks = list(range(lo, hi + 1, step))
    if ticks[-1] != hi:
        ticks.append(hi)
    return ticks


# ─────────────────────────────────────────────────────────────────
#  SPEC
# ─────────────────────────────────────────────────────────────────

@dataclass
class AxisSpec:
    """``fmt`` is ``currency_compact``, ``number``, ``integer`` or ``category``."""
    fmt: str
    position: str = "left"
    width: int = Y_WIDTH_COUNT
    ticks: Optional[List[Any]] = None
    tick_labels: Optional[List[str]] = None
    rotate_labels: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"format": self.fmt, "position": self.position, "width": self.width}
        if self.ticks is not None:
            out["ticks"] = self.ticks
        if self.tick_labels is not None:
            out["tickLabels"] = self.tick_labels
        if self.rotate_labels:
            out["rotateLabels"] = True
        return out


@dataclass
class SeriesSpec:
    key: str
    axis: str = "y"
    money: bool = False


@dataclass
class ChartSpec:
    chart_type: str
    size: str = "md"
    label_key: Optional[str] = None
    series: List[SeriesSpec] = field(default_factory=list)
    dual_axis: bool = False
    axes: Dict[str, AxisSpec] = field(default_factory=dict)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    display: Optional[str] = None
    message: Optional[str] = None
    hint: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def labels(self) -> List[Any]:
        if not self.label_key:
            return []
        return [row.get(self.label_key) for row in self.rows]

    def datasets(self) -> List[Dict[str, Any]]:
        out = []
        for i, s in enumerate(self.series):
            color = PALETTE[i % len(PALETTE)]
            if self.chart_type == "scatter":
                x_key, y_key = self.series[0].key, self.series[-1].key
                data = [
                    {"x": row.get(x_key), "y": row.get(y_key), "tooltip": row.get(self.label_key)}
                    for row in self.rows
                ]
                out.append({"label": y_key, "data": data, "backgroundColor": color, "pointRadius": 5})
                break
            out.append({
                "label": s.key,
                "data": [row.get(s.key) for row in self.rows],
                "formatted": [format_by_key(row.get(s.key), s.key) for row in self.rows],
                "yAxisID": s.axis,
                "backgroundColor": color,
                "borderColor": color,
            })
        return out

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"chart_type": self.chart_type, "size": self.size}
        if self.chart_type in ("bar", "line", "scatter", "hist"):
            out.update({
                "label_key": self.label_key,
                "dual_axis": self.dual_axis,
                "labels": self.labels() if self.chart_type != "scatter" else [],
                "datasets": self.datasets(),
                "options": {
                    "scales": {name: axis.to_dict() for name, axis in self.axes.items()},
                },
            })
        if self.display is not None:
            out["display"] = self.display
        if self.message is not None:
            out["message"] = self.message
        if self.hint:
            out["hint"] = self.hint
        out.update(self.extra)
        return out


# ─────────────────────────────────────────────────────────────────
#  SELECTION
# ─────────────────────────────────────────────────────────────────

def select_chart(payload: Optional[Dict[str, Any]], size: str = "md") -> ChartSpec:
    """Pure function: tagged payload dict → ``ChartSpec``."""
    if not isinstance(payload, dict):
        return ChartSpec("empty", size, message="Sem dados para exibir.")

    kind = payload.get("kind")
    if kind == "empty":
        return ChartSpec("empty", size, message=payload.get("reason") or "", hint=payload.get("hint"))
    if kind == "kpi":
        return _kpi(payload.get("data") or {}, size)
    if kind == "geo_map":
        return _geo(payload.get("data") or {}, size)
    if kind in ("bar", "line", "hist", "scatter"):
        rows = [r for r in (payload.get("data") or []) if isinstance(r, dict)]
        if not rows:
            return ChartSpec("empty", size, message="Sem dados para exibir.")
        if kind == "scatter":
            return _scatter(payload, rows, size)
        return _cartesian(kind, payload, rows, size)

    return ChartSpec("empty", size, message="Formato de widget não suportado.")


def _resolve_keys(payload: Dict[str, Any], sample: Dict[str, Any]) -> tuple:
    label_key = payload.get("labelKey") or pick_label_key(sample)
    series_keys = payload.get("seriesKeys") or [
        k for k in pick_numeric_keys(sample) if k != label_key
    ]
    return label_key, list(series_keys)


def _cartesian(kind: str, payload: Dict[str, Any], rows: List[Dict[str, Any]], size: str) -> ChartSpec:
    label_key, series_keys = _resolve_keys(payload, rows[0])
    if not series_keys:
        return ChartSpec("empty", size, message="Sem métricas numéricas para exibir.")

    money_keys = [k for k in series_keys if is_money_key(k)]
    count_keys = [k for k in series_keys if not is_money_key(k)]
    dual = len(money_keys) == 1 and len(count_keys) == 1 and len(series_keys) == 2

    year_ticks = build_year_ticks(rows, label_key)
    x_axis = AxisSpec(
        fmt="category",
        position="bottom",
        width=0,
        ticks=year_ticks or None,
        tick_labels=[year_tick_label(t) for t in year_ticks] or None,
        rotate_labels=kind == "bar" and label_key != "period" and len(rows) <= ROTATE_LABELS_MAX_ROWS,
    )

    axes: Dict[str, AxisSpec] = {"x": x_axis}
    if dual:
        axes["y"] = AxisSpec(fmt="currency_compact", position="left", width=Y_WIDTH_MONEY)
        axes["y1"] = AxisSpec(fmt="number", position="right", width=Y_WIDTH_RIGHT)
        series = [
            SeriesSpec(money_keys[0], axis="y", money=True),
            SeriesSpec(count_keys[0], axis="y1", money=False),
        ]
    else:
        first_is_money = is_money_key(series_keys[0])
        axes["y"] = AxisSpec(
            fmt="currency_compact" if first_is_money else "number",
            position="left",
            width=Y_WIDTH_MONEY if money_keys else Y_WIDTH_COUNT,
        )
        series = [SeriesSpec(k, axis="y", money=is_money_key(k)) for k in series_keys]

    return ChartSpec(
        chart_type=kind,
        size=size,
        label_key=label_key,
        series=series,
        dual_axis=dual,
        axes=axes,
        rows=rows,
    )


def _scatter(payload: Dict[str, Any], rows: List[Dict[str, Any]], size: str) -> ChartSpec:
    label_key, series_keys = _resolve_keys(payload, rows[0])
    if len(series_keys) < 2:
        return ChartSpec("empty", size, message="Sem métricas numéricas para exibir.")

    x_key, y_key = series_keys[0], series_keys[1]
    points = [
        r for r in rows
        if is_finite_number(r.get(x_key)) and is_finite_number(r.get(y_key))
    ]
    if not points:
        return ChartSpec("empty", size, message="Sem dados para exibir.")

    xs = [p[x_key] for p in points]
    x_axis = AxisSpec(
        fmt="integer",
        position="bottom",
        width=0,
        ticks=build_integer_ticks(min(xs) - 1, max(xs) + 1, size),
    )
    y_money = is_money_key(y_key)
    y_axis = AxisSpec(
        fmt="currency_compact" if y_money else "number",
        position="left",
        width=Y_WIDTH_MONEY if y_money else Y_WIDTH_COUNT,
    )
    return ChartSpec(
        chart_type="scatter",
        size=size,
        label_key=label_key,
        series=[SeriesSpec(x_key, axis="x"), SeriesSpec(y_key, axis="y", money=y_money)],
        axes={"x": x_axis, "y": y_axis},
        rows=points,
    )


def _kpi(datum: Dict[str, Any], size: str) -> ChartSpec:
    return ChartSpec(
        chart_type="kpi",
        size=size,
        display=format_kpi_value(datum.get("value"), datum.get("unit")),
        extra={"label": datum.get("label", ""), "sub": datum.get("sub")},
    )


def _geo(aggregate: Dict[str, Any], size: str) -> ChartSpec:
    """Ranked country list plus the Brazilian state breakdown."""
    counts = aggregate.get("counts") or {}
    by_country = counts.get("byCountry") or {}
    by_state = counts.get("byStateBR") or {}

    def ranked(mapping: Dict[str, int]) -> List[Dict[str, Any]]:
        items = sorted(mapping.items(), key=lambda kv: kv[1], reverse=True)
        return [{"code": code, "players": count} for code, count in items]

    return ChartSpec(
        chart_type="geo",
        size=size,
        extra={
            "countries": ranked(by_country),
            "states_br": ranked(by_state),
            "missing": int(counts.get("missing") or 0),
            "total": sum(by_country.values()),
        },
    )
