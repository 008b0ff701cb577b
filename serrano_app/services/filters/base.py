"""
WidgetFilters — the normalized, request-scoped filter set.

Single Responsibility: hold the filters a widget request applies and
serialize them (echo in the envelope, query string for the client).
Parsing raw query params lives in ``services/filters/engine.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Dict, List, Optional

# Categorical list filters, in query-string order
LIST_FILTERS = ("position", "agency", "situation", "foot", "club", "country", "league")


@dataclass
class WidgetFilters:
    """Absence of every field means "no filtering"."""
    period_from: Optional[date] = None
    period_to: Optional[date] = None
    position: List[str] = field(default_factory=list)
    agency: List[str] = field(default_factory=list)
    situation: List[str] = field(default_factory=list)
    foot: List[str] = field(default_factory=list)
    club: List[str] = field(default_factory=list)
    country: List[str] = field(default_factory=list)
    league: List[str] = field(default_factory=list)

    @property
    def has_period(self) -> bool:
        return self.period_from is not None or self.period_to is not None

    @property
    def is_empty(self) -> bool:
        return not self.has_period and not any(getattr(self, name) for name in LIST_FILTERS)

    def to_dict(self) -> Dict[str, Any]:
        """Echo of the applied filters (only the non-empty ones)."""
        out: Dict[str, Any] = {}
        if self.has_period:
            out["period"] = {
                "from": self.period_from.isoformat() if self.period_from else None,
                "to": self.period_to.isoformat() if self.period_to else None,
            }
        for name in LIST_FILTERS:
            values = getattr(self, name)
            if values:
                out[name] = list(values)
        return out

    def to_query_params(self) -> Dict[str, str]:
        """Encode as the query string the widget endpoint parses."""
        params: Dict[str, str] = {}
        if self.period_from:
            params["from"] = self.period_from.isoformat()
        if self.period_to:
            params["to"] = self.period_to.isoformat()
        for name in LIST_FILTERS:
            values = getattr(self, name)
            if values:
                params[name] = ",".join(values)
        return params

    def replace(self, **changes: Any) -> "WidgetFilters":
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(changes)
        return WidgetFilters(**current)
