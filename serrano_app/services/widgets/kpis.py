"""
KpiService — the batched KPI strip.

One request returns every KPI for the viewing scope, so the dashboard
header does not fan out into one call per number.  The roster half is
computed unless scope is ``market``; the market half unless scope is
``serrano``.  Disabled KPIs keep their key with ``value: None``.

Usage::

    from serrano_app.services.widgets.kpis import kpi_service

    result = await kpi_service.load("both")
    # {"ok": True, "generatedAt": ..., "scope": "both", "kpis": {...}}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from serrano_app.core.database import DatabaseManager, db_manager
from serrano_app.services.widgets.base import KpiDatum, normalize_scope, utc_now_iso
from serrano_app.services.widgets.loaders.market import MarketLoader
from serrano_app.services.widgets.loaders.roster import RosterLoader

logger = logging.getLogger(__name__)

KPI_ERROR = "Erro interno ao carregar KPIs."

# Key → (label, unit) used when the side is disabled for the scope
KPI_KEYS: Dict[str, tuple] = {
    "serrano.players_count": ("Jogadores do Serrano", None),
    "serrano.total_market_value": ("Valor de mercado total", "EUR"),
    "serrano.avg_age": ("Idade média", None),
    "market.deals_count": ("Transações no mercado", None),
    "market.total_fee": ("Volume financeiro do mercado", "EUR"),
    "market.avg_fee": ("Ticket médio", "EUR"),
}


class KpiService:

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        roster: Optional[RosterLoader] = None,
        market: Optional[MarketLoader] = None,
    ) -> None:
        self.db = db or db_manager
        self.roster = roster or RosterLoader(self.db)
        self.market = market or MarketLoader(self.db)

    async def load(self, scope: Optional[str] = None) -> Dict[str, Any]:
        scope = normalize_scope(scope)
        kpis: Dict[str, KpiDatum] = {
            key: KpiDatum(label, None, unit) for key, (label, unit) in KPI_KEYS.items()
        }

        try:
            async with self.db.get_session() as session:
                if scope != "market":
                    kpis.update(await self.roster.compute_kpis(session))
                if scope != "serrano":
                    kpis.update(await self.market.compute_kpis(session))
        except Exception as exc:
            logger.error(f"[KpiService] Error loading KPIs ({scope}): {exc}", exc_info=True)
            return {"ok": False, "error": KPI_ERROR}

        return {
            "ok": True,
            "generatedAt": utc_now_iso(),
            "scope": scope,
            "kpis": {key: datum.to_dict() for key, datum in kpis.items()},
        }


# ── Singleton ────────────────────────────────────────────────────
kpi_service = KpiService()
