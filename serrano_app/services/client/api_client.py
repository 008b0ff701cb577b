"""
DashboardApiClient — async HTTP access to the dashboard API.

Single Responsibility: execute one widget or KPI request and hand back
the decoded envelope.  No state, no retries, no caching.

Never raises for transport problems: timeouts, connection errors, HTTP
errors and invalid JSON all become ``{"ok": False, "error": ...}``
envelopes, so a single failing card never breaks the composition pass.
Cancellation (``asyncio.CancelledError``) is propagated untouched.

Usage::

    from serrano_app.services.client.api_client import DashboardApiClient

    client = DashboardApiClient("http://127.0.0.1:8000")
    envelope = await client.fetch_widget("serrano.age_distribution", "both", filters)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from serrano_app.core.config import settings
from serrano_app.services.filters.base import WidgetFilters

logger = logging.getLogger(__name__)

WIDGET_ERROR = "Erro ao carregar widget."
KPI_ERROR = "Erro ao carregar KPIs."

API_PREFIX = "/api/v1/dashboard"


class DashboardApiClient:
    """
    Each call creates and destroys its own ``httpx.AsyncClient``; an
    optional ``transport`` lets tests route requests to an ASGI app.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS
        self.transport = transport

    async def fetch_widget(
        self,
        widget_id: str,
        scope: str,
        filters: Optional[WidgetFilters] = None,
    ) -> Dict[str, Any]:
        params = {"scope": scope, **(filters or WidgetFilters()).to_query_params()}
        path = f"{API_PREFIX}/widgets/{quote(widget_id, safe='')}"
        result = await self._get(path, params)
        if result is None:
            return {"ok": False, "widgetId": widget_id, "error": WIDGET_ERROR}
        return result

    async def fetch_kpis(self, scope: str) -> Dict[str, Any]:
        result = await self._get(f"{API_PREFIX}/kpis", {"scope": scope})
        if result is None:
            return {"ok": False, "error": KPI_ERROR}
        return result

    # ─────────────────────────────────────────────────────────
    #  INTERNAL HELPERS
    # ─────────────────────────────────────────────────────────

    async def _get(self, path: str, params: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """Decoded JSON object, or ``None`` on any transport/decoding failure."""
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.get(path, params=params)
        except httpx.TimeoutException:
            logger.warning(f"[DashboardApiClient] Timeout after {self.timeout}s on {path}")
            return None
        except httpx.HTTPError as exc:
            logger.warning(f"[DashboardApiClient] Request to {path} failed: {exc}")
            return None

        if response.status_code >= 400:
            logger.warning(
                f"[DashboardApiClient] HTTP {response.status_code} on {path}: "
                f"{response.text[:200]}"
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"[DashboardApiClient] Invalid JSON from {path}")
            return None

        return data if isinstance(data, dict) else None
