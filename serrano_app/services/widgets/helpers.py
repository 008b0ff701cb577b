"""
Shared helpers for aggregation loaders.

Single Responsibility: reusable data-shaping functions consumed by more
than one loader (unit scaling, binning, sanity filtering, rankings).
No SQL and no widget-specific logic here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

# Player market values are stored in millions of EUR
MARKET_VALUE_SCALE = 1_000_000

# Plausible athlete age range; anything outside is a data-entry error
MIN_PLAUSIBLE_AGE = 10
MAX_PLAUSIBLE_AGE = 45

SCATTER_LIMIT = 800


# ── Numbers ──────────────────────────────────────────────────────

def to_number(value: Any) -> Optional[float]:
    """Finite float or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def scale_market_value(value: Any) -> Optional[float]:
    """Stored millions → currency units."""
    number = to_number(value)
    if number is None:
        return None
    return number * MARKET_VALUE_SCALE


def safe_label(value: Any, fallback: str = "—") -> str:
    text = str(value).strip() if value is not None else ""
    return text or fallback


def short_label(value: str, limit: int = 18) -> str:
    """Truncate long names for axis labels."""
    return value if len(value) <= limit else value[: limit - 1].rstrip() + "…"


# ── Binning ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class Bin:
    """Half-open interval ``(lower, upper]``."""
    label: str
    lower: float
    upper: float

    def contains(self, value: float) -> bool:
        return self.lower < value <= self.upper


AGE_BINS: List[Bin] = [
    Bin("≤11", -math.inf, 11),
    Bin("12–14", 11, 14),
    Bin("15–17", 14, 17),
    Bin("18–20", 17, 20),
    Bin("21–23", 20, 23),
    Bin("24–27", 23, 27),
    Bin("28+", 27, math.inf),
]

FEE_BINS: List[Bin] = [
    Bin("≤0.5M", -math.inf, 500_000),
    Bin("0.5–2M", 500_000, 2_000_000),
    Bin("2–5M", 2_000_000, 5_000_000),
    Bin("5–10M", 5_000_000, 10_000_000),
    Bin("10–20M", 10_000_000, 20_000_000),
    Bin("20M+", 20_000_000, math.inf),
]


def bin_counts(values: Iterable[Any], bins: Sequence[Bin]) -> Dict[str, int]:
    """
    Count *values* per bin, keeping every bin (zero counts included)
    in bin order.  Non-numeric values are skipped.
    """
    series = pd.to_numeric(pd.Series(list(values), dtype="object"), errors="coerce").dropna()
    edges = [bins[0].lower] + [b.upper for b in bins]
    labels = [b.label for b in bins]
    if series.empty:
        return {label: 0 for label in labels}

    categories = pd.cut(series, bins=edges, labels=labels, right=True)
    counts = categories.value_counts(sort=False).reindex(labels, fill_value=0)
    return {label: int(count) for label, count in counts.items()}


def find_bin(value: float, bins: Sequence[Bin]) -> Optional[Bin]:
    for b in bins:
        if b.contains(value):
            return b
    return None


# ── Rankings ─────────────────────────────────────────────────────

def merge_dual_ranking(
    first: Dict[str, float],
    second: Dict[str, float],
    n: int,
    first_key: str = "buyer_total",
    second_key: str = "seller_total",
    entity_key: str = "club",
) -> List[Dict[str, Any]]:
    """
    Merge two rankings keyed by entity name.

    Missing sides become 0, entities with 0 on both sides are dropped,
    the rest is sorted by ``max(first, second)`` descending and cut to *n*.
    Ties keep first-seen order (entities of *first*, then of *second*).
    """
    merged: Dict[str, Dict[str, Any]] = {}
    for name, total in first.items():
        merged.setdefault(name, {entity_key: name, first_key: 0.0, second_key: 0.0})
        merged[name][first_key] = float(total or 0)
    for name, total in second.items():
        merged.setdefault(name, {entity_key: name, first_key: 0.0, second_key: 0.0})
        merged[name][second_key] = float(total or 0)

    rows = [r for r in merged.values() if r[first_key] > 0 or r[second_key] > 0]
    rows.sort(key=lambda r: max(r[first_key], r[second_key]), reverse=True)
    return rows[:n]
