"""
GeoLoader — the overview map ("overview.*").

Builds the geo aggregate fresh on every request from the full roster
joined to each player's club::

    {
        "counts":  {"byCountry": {"BR": 12}, "byStateBR": {"SP": 7}, "missing": 1},
        "players": {"byCountry": {"BR": [PlayerMini, ...]},
                    "byStateBR": {"SP": [PlayerMini, ...]}}
    }

A player without a club, or whose club has no country, only counts as
``missing``.  Brazilian clubs without a state land under ``"—"``.
Failures degrade to an ``empty`` card, never to an error envelope.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from serrano_app.models.football_models import Club, Player
from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.widgets.base import (
    BaseLoader,
    Handler,
    LoadContext,
    WidgetPayload,
    WidgetResponse,
)

logger = logging.getLogger(__name__)

BRAZIL = "BR"
UNKNOWN_STATE = "—"


def _absolute_url(url: Optional[str], origin: Optional[str]) -> Optional[str]:
    """Resolve a site-relative asset URL against the request origin."""
    if url and origin and url.startswith("/"):
        return origin.rstrip("/") + url
    return url or None


def build_geo_aggregate(rows: List[Dict[str, Any]], origin: Optional[str] = None) -> Dict[str, Any]:
    """Pure aggregation step, separated from the query for testing."""
    by_country: Dict[str, int] = {}
    by_state: Dict[str, int] = {}
    players_by_country: Dict[str, List[dict]] = {}
    players_by_state: Dict[str, List[dict]] = {}
    missing = 0

    for row in rows:
        country = (row.get("country_code") or "").strip().upper()
        if not row.get("club_id") or not country:
            missing += 1
            continue

        mini = {
            "id": row["id"],
            "name": row.get("name") or "",
            "position": row.get("position"),
            "photoUrl": _absolute_url(row.get("photo_url"), origin),
            "club": {
                "id": row["club_id"],
                "name": row.get("club_name") or "",
                "logoUrl": _absolute_url(row.get("logo_url"), origin),
            },
        }

        by_country[country] = by_country.get(country, 0) + 1
        players_by_country.setdefault(country, []).append(mini)

        if country == BRAZIL:
            uf = (row.get("state_code") or "").strip().upper() or UNKNOWN_STATE
            by_state[uf] = by_state.get(uf, 0) + 1
            players_by_state.setdefault(uf, []).append(mini)

    return {
        "counts": {"byCountry": by_country, "byStateBR": by_state, "missing": missing},
        "players": {"byCountry": players_by_country, "byStateBR": players_by_state},
    }


class GeoLoader(BaseLoader):

    family = "overview"
    not_implemented_reason = "Widget não reconhecido."
    error_message = "Não foi possível carregar os dados do mapa."

    def handlers(self) -> Dict[str, Handler]:
        return {"overview.geo_map": self.geo_map}

    async def geo_map(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        stmt = (
            select(
                Player.id,
                Player.name,
                Player.position,
                Player.photo_url,
                Club.id.label("club_id"),
                Club.name.label("club_name"),
                Club.logo_url,
                Club.country_code,
                Club.state_code,
            )
            .outerjoin(Club, Player.club_id == Club.id)
            .order_by(Player.name)
        )
        rows = [dict(r) for r in (await session.execute(stmt)).mappings().all()]
        if not rows:
            return WidgetPayload.empty(
                "Nenhum jogador cadastrado.",
                "Cadastre jogadores e seus clubes para ver o mapa.",
            )

        logger.debug(f"[GeoLoader] Aggregating {len(rows)} players (origin={ctx.origin})")
        return WidgetPayload.geo_map(build_geo_aggregate(rows, ctx.origin))

    def _error(self, widget_id: str) -> WidgetResponse:
        # The map shows a neutral card instead of an error state
        return WidgetResponse.empty(widget_id, self.error_message)
