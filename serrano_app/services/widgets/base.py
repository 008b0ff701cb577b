"""
Widget contracts — definitions, payloads, response envelopes, loader base.

Single Responsibility: define the shapes every widget-related module
exchanges.  Loaders produce ``WidgetPayload``; the dispatcher wraps it
in a ``WidgetResponse``; the API serializes ``WidgetResponse.to_dict()``.

Payload kinds::

    kpi       → {"kind": "kpi", "data": {label, value, unit?, sub?}}
    bar/line/scatter/hist
              → {"kind": ..., "data": [records], "labelKey", "seriesKeys"}
    geo_map   → {"kind": "geo_map", "data": {counts, players}}
    empty     → {"kind": "empty", "reason": str, "hint"?: str}

Usage in a concrete loader::

    from serrano_app.services.widgets.base import BaseLoader, WidgetPayload

    class RosterLoader(BaseLoader):
        family = "serrano"
        ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from serrano_app.config.widget_registry import DEFAULT_SCOPE, SCOPES
from serrano_app.core.database import DatabaseManager, db_manager
from serrano_app.services.filters.base import WidgetFilters

logger = logging.getLogger(__name__)

CHART_KINDS = ("bar", "line", "scatter", "hist")
PAYLOAD_KINDS = ("kpi",) + CHART_KINDS + ("geo_map", "empty")


# ── Scope helpers ────────────────────────────────────────────────

def normalize_scope(value: Any) -> str:
    """Coerce anything that is not a valid scope to ``both``."""
    if isinstance(value, str) and value.strip().lower() in SCOPES:
        return value.strip().lower()
    return DEFAULT_SCOPE


def scopes_compatible(widget_scope: str, viewing_scope: str) -> bool:
    """``both`` on either side is always compatible; otherwise exact match."""
    if widget_scope == "both" or viewing_scope == "both":
        return True
    return widget_scope == viewing_scope


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ── Catalog entry ────────────────────────────────────────────────

@dataclass(frozen=True)
class WidgetDefinition:
    """Immutable catalog entry. Identity is ``id``."""
    id: str
    title: str
    description: str
    group: str
    scope: str
    default_enabled: bool
    default_size: str
    keywords: tuple = ()

    @classmethod
    def from_registry(cls, entry: Dict[str, Any]) -> "WidgetDefinition":
        return cls(
            id=entry["id"],
            title=entry["title"],
            description=entry.get("description", ""),
            group=entry["group"],
            scope=entry["scope"],
            default_enabled=bool(entry.get("default_enabled", False)),
            default_size=entry.get("default_size", "md"),
            keywords=tuple(entry.get("keywords", [])),
        )

    @property
    def is_kpi(self) -> bool:
        return self.id.startswith("kpi.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "group": self.group,
            "scope": self.scope,
            "defaultEnabled": self.default_enabled,
            "defaultSize": self.default_size,
            "keywords": list(self.keywords),
        }


# ── Payloads ─────────────────────────────────────────────────────

@dataclass
class KpiDatum:
    """Single KPI value. ``value`` is ``None`` when not applicable."""
    label: str
    value: Optional[float]
    unit: Optional[str] = None
    sub: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"label": self.label, "value": self.value}
        if self.unit is not None:
            out["unit"] = self.unit
        if self.sub is not None:
            out["sub"] = self.sub
        return out


@dataclass
class WidgetPayload:
    """
    Tagged payload produced by a loader.

    Chart kinds carry the record list plus the explicit ``label_key`` /
    ``series_keys`` so the renderer does not have to sniff the shape.
    """
    kind: str
    data: Any = None
    label_key: Optional[str] = None
    series_keys: List[str] = field(default_factory=list)
    reason: Optional[str] = None
    hint: Optional[str] = None

    # ── Builders ─────────────────────────────────────────────

    @classmethod
    def kpi(cls, datum: KpiDatum) -> "WidgetPayload":
        return cls(kind="kpi", data=datum)

    @classmethod
    def chart(
        cls,
        kind: str,
        data: List[Dict[str, Any]],
        label_key: str,
        series_keys: List[str],
    ) -> "WidgetPayload":
        if kind not in CHART_KINDS:
            raise ValueError(f"Unsupported chart kind: {kind}")
        return cls(kind=kind, data=data, label_key=label_key, series_keys=list(series_keys))

    @classmethod
    def geo_map(cls, aggregate: Dict[str, Any]) -> "WidgetPayload":
        return cls(kind="geo_map", data=aggregate)

    @classmethod
    def empty(cls, reason: str, hint: Optional[str] = None) -> "WidgetPayload":
        return cls(kind="empty", reason=reason, hint=hint)

    @property
    def is_empty(self) -> bool:
        return self.kind == "empty"

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == "empty":
            out: Dict[str, Any] = {"kind": "empty", "reason": self.reason or ""}
            if self.hint:
                out["hint"] = self.hint
            return out
        if self.kind == "kpi":
            return {"kind": "kpi", "data": self.data.to_dict()}
        if self.kind == "geo_map":
            return {"kind": "geo_map", "data": self.data}
        return {
            "kind": self.kind,
            "data": self.data,
            "labelKey": self.label_key,
            "seriesKeys": list(self.series_keys),
        }


# ── Envelope ─────────────────────────────────────────────────────

@dataclass
class WidgetResponse:
    """
    Standardized response for one widget.

    ``ok=True`` carries a payload (possibly ``empty``); ``ok=False``
    carries a generic, display-safe error message.
    """
    ok: bool
    widget_id: Optional[str]
    payload: Optional[WidgetPayload] = None
    filters: Optional[WidgetFilters] = None
    error: Optional[str] = None
    generated_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def success(
        cls,
        widget_id: str,
        payload: WidgetPayload,
        filters: Optional[WidgetFilters] = None,
    ) -> "WidgetResponse":
        return cls(ok=True, widget_id=widget_id, payload=payload, filters=filters)

    @classmethod
    def empty(
        cls,
        widget_id: Optional[str],
        reason: str,
        hint: Optional[str] = None,
        filters: Optional[WidgetFilters] = None,
    ) -> "WidgetResponse":
        return cls(
            ok=True,
            widget_id=widget_id,
            payload=WidgetPayload.empty(reason, hint),
            filters=filters,
        )

    @classmethod
    def failure(cls, widget_id: Optional[str], error: str) -> "WidgetResponse":
        return cls(ok=False, widget_id=widget_id, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            out: Dict[str, Any] = {"ok": False, "error": self.error}
            if self.widget_id:
                out["widgetId"] = self.widget_id
            return out
        out = {
            "ok": True,
            "widgetId": self.widget_id,
            "generatedAt": self.generated_at,
            "payload": self.payload.to_dict(),
        }
        if self.filters is not None:
            out["filters"] = self.filters.to_dict()
        return out


# ── Loader base ──────────────────────────────────────────────────

@dataclass
class LoadContext:
    """Request-level information the dispatcher hands to loaders."""
    scope: str = DEFAULT_SCOPE
    origin: Optional[str] = None


# A handler receives an open session, the filters and the request context
Handler = Callable[[AsyncSession, WidgetFilters, LoadContext], Awaitable[WidgetPayload]]


class BaseLoader(ABC):
    """
    Abstract base class for aggregation loaders.

    Subclasses MUST implement:
      - ``handlers()`` → ``{widget_id: async handler}``

    ``load()`` never raises: an unknown id becomes an ``empty`` envelope
    and any query failure becomes a generic ``ok=False`` envelope, with
    the real cause logged here.
    """

    family: str = ""
    not_implemented_reason: str = "Widget ainda não implementado."
    error_message: str = "Erro ao carregar dados do widget."

    def __init__(self, db: Optional[DatabaseManager] = None) -> None:
        self.db = db or db_manager

    @abstractmethod
    def handlers(self) -> Dict[str, Handler]:
        """Map of widget id → coroutine building its payload."""
        ...

    async def load(
        self,
        widget_id: str,
        filters: WidgetFilters,
        ctx: Optional[LoadContext] = None,
    ) -> WidgetResponse:
        ctx = ctx or LoadContext()
        handler = self.handlers().get(widget_id)
        if handler is None:
            return WidgetResponse.empty(widget_id, self.not_implemented_reason, filters=filters)

        try:
            async with self.db.get_session() as session:
                payload = await handler(session, filters, ctx)
        except Exception as exc:
            logger.error(
                f"[{type(self).__name__}] Error loading '{widget_id}': {exc}",
                exc_info=True,
            )
            return self._error(widget_id)

        return WidgetResponse.success(widget_id, payload, filters)

    def _error(self, widget_id: str) -> WidgetResponse:
        """Build the display-safe failure envelope for a widget."""
        return WidgetResponse.failure(widget_id, self.error_message)
