"""
FilterEngine — query params → ``WidgetFilters``.

Single Responsibility: validate and normalize the raw query string of
a widget request.  Invalid values are dropped, never raised: a bad
filter must not turn a widget into an error card.

Accepted params::

    from | periodFrom | period.from     → YYYY-MM-DD (inclusive)
    to   | periodTo   | period.to       → YYYY-MM-DD (inclusive)
    position, agency, situation, foot,
    club, country, league              → comma-separated lists

Usage::

    from serrano_app.services.filters.engine import filter_engine

    filters = filter_engine.parse(request.query_params)
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, List, Mapping, Optional

from serrano_app.services.filters.base import LIST_FILTERS, WidgetFilters

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_FROM_KEYS = ("from", "periodFrom", "period.from")
_TO_KEYS = ("to", "periodTo", "period.to")


def parse_list(raw: Optional[str]) -> List[str]:
    """``"a, b,,c"`` → ``["a", "b", "c"]``."""
    if not raw:
        return []
    return [item.strip() for item in str(raw).split(",") if item.strip()]


def parse_iso_date(raw: Any) -> Optional[date]:
    """Strict ``YYYY-MM-DD`` that is also a real calendar date."""
    if not isinstance(raw, str) or not _ISO_DATE.match(raw.strip()):
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        return None


class FilterEngine:
    """Stateless parser for widget filter params."""

    def parse(self, params: Mapping[str, Any]) -> WidgetFilters:
        period_from = self._read_date(params, _FROM_KEYS)
        period_to = self._read_date(params, _TO_KEYS)

        lists = {name: parse_list(params.get(name)) for name in LIST_FILTERS}
        return WidgetFilters(period_from=period_from, period_to=period_to, **lists)

    @staticmethod
    def _read_date(params: Mapping[str, Any], keys: tuple) -> Optional[date]:
        """First present key wins; an invalid value is ignored."""
        for key in keys:
            raw = params.get(key)
            if raw:
                parsed = parse_iso_date(raw)
                if parsed is None:
                    logger.debug(f"[FilterEngine] Ignoring invalid date {key}={raw!r}")
                return parsed
        return None


# ── Singleton ────────────────────────────────────────────────────
filter_engine = FilterEngine()
