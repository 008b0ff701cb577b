"""
WidgetCatalog — read-only view over ``WIDGET_REGISTRY``.

Single Responsibility: answer "which widgets exist" questions.  Used as
the validation oracle by the layout store and as the scope filter by
the composition engine.  No I/O, no side effects.

Usage::

    from serrano_app.services.widgets.catalog import widget_catalog

    widget_catalog.find_by_id("serrano.age_distribution")
    widget_catalog.picker_entries("market")
    widget_catalog.search("both", query="idade", group="serrano")
"""

from __future__ import annotations

from typing import Dict, List, Optional

from serrano_app.config.widget_registry import SCOPE_ALLOWED_GROUPS, WIDGET_REGISTRY
from serrano_app.services.widgets.base import (
    WidgetDefinition,
    normalize_scope,
    scopes_compatible,
)

ALL_GROUPS = "all"


class WidgetCatalog:
    """Ordered, immutable collection of ``WidgetDefinition``."""

    def __init__(self, entries: Optional[List[dict]] = None) -> None:
        source = WIDGET_REGISTRY if entries is None else entries
        self._definitions: List[WidgetDefinition] = [
            WidgetDefinition.from_registry(e) for e in source
        ]
        self._by_id: Dict[str, WidgetDefinition] = {d.id: d for d in self._definitions}

    def list_all(self) -> List[WidgetDefinition]:
        return list(self._definitions)

    def find_by_id(self, widget_id: str) -> Optional[WidgetDefinition]:
        return self._by_id.get(widget_id)

    def ids(self) -> List[str]:
        return [d.id for d in self._definitions]

    def __contains__(self, widget_id: object) -> bool:
        return widget_id in self._by_id

    def default_enabled_ids(self) -> List[str]:
        """Ids enabled on a fresh layout, in catalog order."""
        return [d.id for d in self._definitions if d.default_enabled]

    def list_by_scope(self, scope: str) -> List[WidgetDefinition]:
        """Definitions renderable under the viewing *scope*."""
        scope = normalize_scope(scope)
        return [d for d in self._definitions if scopes_compatible(d.scope, scope)]

    def picker_entries(self, scope: str) -> List[WidgetDefinition]:
        """
        Widgets offered by the picker: KPIs excluded (they render in the
        KPI strip) and groups restricted to the ones *scope* admits.
        """
        allowed = SCOPE_ALLOWED_GROUPS[normalize_scope(scope)]
        return [d for d in self._definitions if not d.is_kpi and d.group in allowed]

    def search(
        self,
        scope: str,
        query: Optional[str] = None,
        group: Optional[str] = None,
    ) -> List[WidgetDefinition]:
        """
        Picker entries narrowed by *group* and a free-text *query*.

        ``group`` of ``None`` or ``"all"`` keeps every group.  The query is
        matched case-insensitively against the title, the description and
        each keyword; a blank query matches everything.
        """
        entries = self.picker_entries(scope)
        if group and group != ALL_GROUPS:
            entries = [d for d in entries if d.group == group]

        needle = (query or "").strip().lower()
        if not needle:
            return entries
        return [d for d in entries if _matches(d, needle)]


def _matches(definition: WidgetDefinition, needle: str) -> bool:
    if needle in definition.title.lower():
        return True
    if needle in (definition.description or "").lower():
        return True
    return any(needle in keyword.lower() for keyword in definition.keywords)


# ── Singleton ────────────────────────────────────────────────────
widget_catalog = WidgetCatalog()
