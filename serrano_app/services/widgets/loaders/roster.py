"""
RosterLoader — widgets over the club's own player roster ("serrano.*").

Market values are stored in millions of EUR and are scaled with
``MARKET_VALUE_SCALE`` before they leave this module, in every widget
and KPI that touches them.

Widgets:
  serrano.age_distribution        → bar  {bucket, players}
  serrano.position_distribution   → bar  {position, players}
  serrano.market_value_top_players→ bar  {player, value, position}
  serrano.age_vs_value_scatter    → scatter {age, value, position, label}
  serrano.representation_ranking  → bar  {agency, players, agency_short}
  kpi.serrano.*                   → kpi
"""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from serrano_app.models.football_models import Player
from serrano_app.services.data.sql_clauses import (
    build_age_sanity_clause,
    build_roster_clauses,
)
from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.widgets.base import (
    BaseLoader,
    Handler,
    KpiDatum,
    LoadContext,
    WidgetPayload,
)
from serrano_app.services.widgets.helpers import (
    AGE_BINS,
    SCATTER_LIMIT,
    bin_counts,
    safe_label,
    scale_market_value,
    short_label,
    to_number,
)

TOP_PLAYERS_LIMIT = 10
TOP_AGENCIES_LIMIT = 10

NO_PLAYERS = "Nenhum jogador encontrado com os filtros aplicados."


class RosterLoader(BaseLoader):

    family = "serrano"
    not_implemented_reason = "Widget do Serrano ainda não implementado."
    error_message = "Erro ao carregar dados do Serrano."

    def handlers(self) -> Dict[str, Handler]:
        return {
            "serrano.age_distribution": self.age_distribution,
            "serrano.position_distribution": self.position_distribution,
            "serrano.market_value_top_players": self.market_value_top_players,
            "serrano.age_vs_value_scatter": self.age_vs_value_scatter,
            "serrano.representation_ranking": self.representation_ranking,
            "kpi.serrano.players_count": self._kpi_widget("serrano.players_count"),
            "kpi.serrano.total_market_value": self._kpi_widget("serrano.total_market_value"),
            "kpi.serrano.avg_age": self._kpi_widget("serrano.avg_age"),
        }

    # ── Charts ───────────────────────────────────────────────

    async def age_distribution(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        stmt = select(Player.age).where(
            *build_roster_clauses(filters),
            Player.age.isnot(None),
            build_age_sanity_clause(Player.age),
        )
        ages = (await session.execute(stmt)).scalars().all()
        if not ages:
            return WidgetPayload.empty(
                NO_PLAYERS, "Verifique se há jogadores com idade preenchida.",
            )

        counts = bin_counts(ages, AGE_BINS)
        data = [{"bucket": label, "players": count} for label, count in counts.items()]
        return WidgetPayload.chart("bar", data, "bucket", ["players"])

    async def position_distribution(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        position = func.coalesce(func.nullif(func.trim(Player.position), ""), "—")
        players = func.count(Player.id)
        stmt = (
            select(position.label("position"), players.label("players"))
            .where(*build_roster_clauses(filters))
            .group_by(position)
            .order_by(players.desc())
        )
        rows = (await session.execute(stmt)).mappings().all()
        if not rows:
            return WidgetPayload.empty(NO_PLAYERS)

        data = [{"position": r["position"], "players": int(r["players"])} for r in rows]
        return WidgetPayload.chart("bar", data, "position", ["players"])

    async def market_value_top_players(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        stmt = (
            select(Player.name, Player.market_value, Player.position)
            .where(*build_roster_clauses(filters), Player.market_value.isnot(None))
            .order_by(Player.market_value.desc())
            .limit(TOP_PLAYERS_LIMIT)
        )
        rows = (await session.execute(stmt)).mappings().all()
        if not rows:
            return WidgetPayload.empty(
                "Nenhum jogador com valor de mercado informado.",
                "Cadastre o valor de mercado dos jogadores.",
            )

        data = [
            {
                "player": safe_label(r["name"]),
                "value": scale_market_value(r["market_value"]),
                "position": safe_label(r["position"]),
            }
            for r in rows
        ]
        return WidgetPayload.chart("bar", data, "player", ["value"])

    async def age_vs_value_scatter(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        stmt = (
            select(Player.name, Player.age, Player.market_value, Player.position)
            .where(
                *build_roster_clauses(filters),
                Player.age.isnot(None),
                Player.market_value.isnot(None),
                build_age_sanity_clause(Player.age),
            )
            .limit(SCATTER_LIMIT)
        )
        rows = (await session.execute(stmt)).mappings().all()
        if not rows:
            return WidgetPayload.empty(
                NO_PLAYERS, "Verifique se há jogadores com idade e valor preenchidos.",
            )

        data = [
            {
                "age": int(r["age"]),
                "value": scale_market_value(r["market_value"]),
                "position": safe_label(r["position"]),
                "label": safe_label(r["name"]),
            }
            for r in rows
        ]
        return WidgetPayload.chart("scatter", data, "label", ["age", "value"])

    async def representation_ranking(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        agency = func.trim(Player.agency)
        players = func.count(Player.id)
        stmt = (
            select(agency.label("agency"), players.label("players"))
            .where(*build_roster_clauses(filters), Player.agency.isnot(None), agency != "")
            .group_by(agency)
            .order_by(players.desc())
            .limit(TOP_AGENCIES_LIMIT)
        )
        rows = (await session.execute(stmt)).mappings().all()
        if not rows:
            return WidgetPayload.empty(
                "Nenhuma agência encontrada com os filtros aplicados.",
                "Verifique se há jogadores com representação preenchida.",
            )

        data = [
            {
                "agency": r["agency"],
                "players": int(r["players"]),
                "agency_short": short_label(r["agency"]),
            }
            for r in rows
        ]
        return WidgetPayload.chart("bar", data, "agency", ["players"])

    # ── KPIs ─────────────────────────────────────────────────

    async def compute_kpis(
        self,
        session: AsyncSession,
        filters: Optional[WidgetFilters] = None,
    ) -> Dict[str, KpiDatum]:
        """Roster KPIs keyed ``serrano.<name>`` (shared with the KPI batch)."""
        clauses = build_roster_clauses(filters or WidgetFilters())

        totals = await session.execute(
            select(func.count(Player.id), func.sum(Player.market_value)).where(*clauses)
        )
        count, total_value = totals.one()

        avg_age = (await session.execute(
            select(func.avg(Player.age)).where(
                *clauses, build_age_sanity_clause(Player.age),
            )
        )).scalar()

        avg_age = to_number(avg_age)
        return {
            "serrano.players_count": KpiDatum("Jogadores do Serrano", int(count or 0)),
            "serrano.total_market_value": KpiDatum(
                "Valor de mercado total", scale_market_value(total_value or 0), "EUR",
            ),
            "serrano.avg_age": KpiDatum(
                "Idade média", round(avg_age, 1) if avg_age is not None else 0,
            ),
        }

    def _kpi_widget(self, key: str) -> Handler:
        async def handler(
            session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
        ) -> WidgetPayload:
            kpis = await self.compute_kpis(session, filters)
            return WidgetPayload.kpi(kpis[key])
        return handler
