"""
LayoutStore — load / sanitize / save the user's dashboard layout.

The layout selects, orders and sizes catalog widgets and remembers the
viewing scope.  It is persisted as JSON under a versioned key::

    {
        "version": 1,
        "scope": "both",
        "enabled": ["overview.geo_map", "serrano.age_distribution"],
        "order":   ["overview.geo_map", "serrano.age_distribution"],
        "sizes":   {"overview.geo_map": "md"}
    }

Rules:
  - Unknown ids are dropped silently (self-healing against catalog changes).
  - Every enabled id is present in ``order`` (missing ones are appended).
  - An invalid scope becomes ``both``.
  - Missing, corrupt or other-version payloads fall back to the default
    layout.  A version bump is the only migration path.

Usage::

    from serrano_app.services.layout.store import LayoutStore
    from serrano_app.services.layout.storage import JsonFileLayoutStorage

    store = LayoutStore(JsonFileLayoutStorage(".dashboard"))
    layout = store.load_or_default()
    layout = store.toggle("market.fee_distribution")
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from serrano_app.config.widget_registry import DEFAULT_SCOPE, SCOPES, SIZES
from serrano_app.services.layout.storage import LayoutStorage
from serrano_app.services.widgets.catalog import WidgetCatalog, widget_catalog

logger = logging.getLogger(__name__)

STORAGE_KEY = "serrano.dashboard.layout.v1"
LAYOUT_VERSION = 1


@dataclass
class DashboardLayout:
    """Client layout. ``enabled`` is a set semantically; ``order`` is the render order."""
    version: int = LAYOUT_VERSION
    scope: str = DEFAULT_SCOPE
    enabled: List[str] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    sizes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "scope": self.scope,
            "enabled": list(self.enabled),
            "order": list(self.order),
            "sizes": dict(self.sizes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DashboardLayout":
        """Tolerant constructor: wrong-typed fields become empty."""
        return cls(
            version=data.get("version", LAYOUT_VERSION),
            scope=data.get("scope", DEFAULT_SCOPE),
            enabled=_str_list(data.get("enabled")),
            order=_str_list(data.get("order")),
            sizes=_str_dict(data.get("sizes")),
        )


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _str_dict(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)}


def _is_current_version(value: Any) -> bool:
    # bool is an int subclass; ``true`` must not pass as version 1
    return isinstance(value, int) and not isinstance(value, bool) and value == LAYOUT_VERSION


def _unique(values: List[str]) -> List[str]:
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class LayoutStore:
    """
    Explicit layout store, one instance per dashboard session.

    Every mutation sanitizes, persists and returns the new layout.
    Persistence is best-effort: write failures are logged and swallowed.
    """

    def __init__(
        self,
        storage: LayoutStorage,
        catalog: Optional[WidgetCatalog] = None,
        key: str = STORAGE_KEY,
    ) -> None:
        self.storage = storage
        self.catalog = catalog or widget_catalog
        self.key = key
        self._layout: Optional[DashboardLayout] = None

    # ── Core operations ──────────────────────────────────────

    def default_layout(self) -> DashboardLayout:
        ids = self.catalog.default_enabled_ids()
        return DashboardLayout(
            version=LAYOUT_VERSION,
            scope=DEFAULT_SCOPE,
            enabled=list(ids),
            order=list(ids),
            sizes={},
        )

    def sanitize(self, layout: DashboardLayout) -> DashboardLayout:
        """Idempotent repair of *layout* against the live catalog."""
        known = self.catalog
        enabled = _unique([i for i in layout.enabled if i in known])
        order = _unique([i for i in layout.order if i in known])
        order += [i for i in enabled if i not in order]

        sizes = {
            i: s for i, s in (layout.sizes or {}).items()
            if i in known and s in SIZES
        }
        scope = layout.scope if layout.scope in SCOPES else DEFAULT_SCOPE

        return DashboardLayout(
            version=LAYOUT_VERSION,
            scope=scope,
            enabled=enabled,
            order=order,
            sizes=sizes,
        )

    def load_or_default(self) -> DashboardLayout:
        """Never raises. Anything unreadable degrades to the default layout."""
        try:
            raw = self.storage.read(self.key)
        except Exception as exc:
            logger.warning(f"[LayoutStore] Cannot read '{self.key}': {exc}")
            raw = None

        layout = self._parse(raw) if raw else None
        if layout is None:
            layout = self.default_layout()

        self._layout = layout
        return layout

    def _parse(self, raw: str) -> Optional[DashboardLayout]:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("[LayoutStore] Corrupt layout payload, using defaults")
            return None

        if not isinstance(data, dict) or not _is_current_version(data.get("version")):
            logger.info("[LayoutStore] Layout version mismatch, using defaults")
            return None

        return self.sanitize(DashboardLayout.from_dict(data))

    def save(self, layout: DashboardLayout) -> DashboardLayout:
        """Sanitize then persist. Returns the sanitized layout."""
        clean = self.sanitize(layout)
        self._layout = clean
        try:
            self.storage.write(self.key, json.dumps(clean.to_dict()))
        except Exception as exc:
            logger.warning(f"[LayoutStore] Cannot persist '{self.key}': {exc}")
        return clean

    def reset(self) -> DashboardLayout:
        return self.save(self.default_layout())

    # ── Mutations ────────────────────────────────────────────

    @property
    def layout(self) -> DashboardLayout:
        if self._layout is None:
            return self.load_or_default()
        return self._layout

    def toggle(self, widget_id: str) -> DashboardLayout:
        """Disable an enabled widget (dropping it from ``order``) or append it."""
        current = self.layout
        if widget_id in current.enabled:
            enabled = [i for i in current.enabled if i != widget_id]
            order = [i for i in current.order if i != widget_id]
        else:
            enabled = current.enabled + [widget_id]
            order = [i for i in current.order if i != widget_id] + [widget_id]
        return self.save(DashboardLayout(
            scope=current.scope, enabled=enabled, order=order, sizes=dict(current.sizes),
        ))

    def reorder(self, order: List[str]) -> DashboardLayout:
        current = self.layout
        return self.save(DashboardLayout(
            scope=current.scope,
            enabled=list(current.enabled),
            order=list(order),
            sizes=dict(current.sizes),
        ))

    def set_size(self, widget_id: str, size: str) -> DashboardLayout:
        current = self.layout
        sizes = dict(current.sizes)
        sizes[widget_id] = size
        return self.save(DashboardLayout(
            scope=current.scope,
            enabled=list(current.enabled),
            order=list(current.order),
            sizes=sizes,
        ))

    def set_scope(self, scope: str) -> DashboardLayout:
        current = self.layout
        return self.save(DashboardLayout(
            scope=scope,
            enabled=list(current.enabled),
            order=list(current.order),
            sizes=dict(current.sizes),
        ))

    # ── Queries ──────────────────────────────────────────────

    def effective_size(self, widget_id: str) -> str:
        """Size override or the definition's default size."""
        override = self.layout.sizes.get(widget_id)
        if override:
            return override
        definition = self.catalog.find_by_id(widget_id)
        return definition.default_size if definition else "md"
