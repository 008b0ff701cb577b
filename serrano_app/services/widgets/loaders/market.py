"""
MarketLoader — widgets over the transfer market ("market.*").

Fees are stored in raw EUR; no scaling applies here.  Every query goes
through ``build_market_clauses`` so period / position / country / club /
league filters behave the same in every widget.

Widgets:
  market.deals_by_month        → line {period, deals}
  market.fee_by_month          → bar  {period, value}
  market.fee_distribution      → bar  {bucket, transfers}
  market.top_buyers_sellers    → bar  {club, buyer_total, seller_total}
  market.top_leagues_countries → bar  {label, deals}
  market.age_vs_fee_scatter    → scatter {age, value, position, label}
  market.position_avg_fee      → bar  {position, avg_fee, deals}
  kpi.market.*                 → kpi
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from serrano_app.models.football_models import Transfer
from serrano_app.services.data.sql_clauses import (
    build_age_sanity_clause,
    build_market_clauses,
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
    FEE_BINS,
    SCATTER_LIMIT,
    bin_counts,
    merge_dual_ranking,
    safe_label,
    to_number,
)

RANKING_LIMIT = 12

NO_TRANSFERS = "Nenhuma transferência encontrada com os filtros aplicados."
NO_FEES = "Nenhuma transferência com valor informado para os filtros aplicados."


def _period_label(year: int, month: int) -> str:
    return f"{int(year):04d}-{int(month):02d}"


class MarketLoader(BaseLoader):

    family = "market"
    not_implemented_reason = "Widget de mercado ainda não implementado."
    error_message = "Erro ao carregar dados de mercado."

    def handlers(self) -> Dict[str, Handler]:
        return {
            "market.deals_by_month": self.deals_by_month,
            "market.fee_by_month": self.fee_by_month,
            "market.fee_distribution": self.fee_distribution,
            "market.top_buyers_sellers": self.top_buyers_sellers,
            "market.top_leagues_countries": self.top_leagues_countries,
            "market.age_vs_fee_scatter": self.age_vs_fee_scatter,
            "market.position_avg_fee": self.position_avg_fee,
            "kpi.market.deals_count": self._kpi_widget("market.deals_count"),
            "kpi.market.total_fee": self._kpi_widget("market.total_fee"),
        }

    # ── Time series ──────────────────────────────────────────

    async def _monthly(
        self,
        session: AsyncSession,
        filters: WidgetFilters,
        metric,
        *extra,
    ) -> List[dict]:
        """Group ``metric`` by year/month of the transfer date, ascending."""
        year = extract("year", Transfer.transfer_date)
        month = extract("month", Transfer.transfer_date)
        stmt = (
            select(year.label("year"), month.label("month"), metric.label("metric"))
            .where(*build_market_clauses(filters), Transfer.transfer_date.isnot(None), *extra)
            .group_by(year, month)
            .order_by(year, month)
        )
        return list((await session.execute(stmt)).mappings().all())

    async def deals_by_month(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        rows = await self._monthly(session, filters, func.count(Transfer.id))
        if not rows:
            return WidgetPayload.empty(NO_TRANSFERS, "Tente ampliar o período selecionado.")

        data = [
            {"period": _period_label(r["year"], r["month"]), "deals": int(r["metric"])}
            for r in rows
        ]
        return WidgetPayload.chart("line", data, "period", ["deals"])

    async def fee_by_month(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        rows = await self._monthly(
            session, filters, func.sum(Transfer.fee), Transfer.fee > 0,
        )
        if not rows:
            return WidgetPayload.empty(NO_FEES, "Tente ampliar o período selecionado.")

        data = [
            {"period": _period_label(r["year"], r["month"]), "value": to_number(r["metric"]) or 0.0}
            for r in rows
        ]
        return WidgetPayload.chart("bar", data, "period", ["value"])

    # ── Distributions ────────────────────────────────────────

    async def fee_distribution(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        stmt = select(Transfer.fee).where(*build_market_clauses(filters), Transfer.fee > 0)
        fees = (await session.execute(stmt)).scalars().all()
        if not fees:
            return WidgetPayload.empty(NO_FEES)

        counts = bin_counts(fees, FEE_BINS)
        data = [{"bucket": label, "transfers": count} for label, count in counts.items()]
        return WidgetPayload.chart("bar", data, "bucket", ["transfers"])

    async def age_vs_fee_scatter(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        stmt = (
            select(
                Transfer.athlete_name,
                Transfer.athlete_age,
                Transfer.fee,
                Transfer.athlete_position,
            )
            .where(
                *build_market_clauses(filters),
                Transfer.athlete_age.isnot(None),
                Transfer.fee > 0,
                build_age_sanity_clause(Transfer.athlete_age),
            )
            .limit(SCATTER_LIMIT)
        )
        rows = (await session.execute(stmt)).mappings().all()
        if not rows:
            return WidgetPayload.empty(
                NO_FEES, "Verifique se as transferências têm idade e valor preenchidos.",
            )

        data = [
            {
                "age": int(r["athlete_age"]),
                "value": to_number(r["fee"]) or 0.0,
                "position": safe_label(r["athlete_position"]),
                "label": safe_label(r["athlete_name"]),
            }
            for r in rows
        ]
        return WidgetPayload.chart("scatter", data, "label", ["age", "value"])

    # ── Rankings ─────────────────────────────────────────────

    async def _club_totals(self, session: AsyncSession, filters: WidgetFilters, column) -> Dict[str, float]:
        club = func.trim(column)
        total = func.sum(Transfer.fee)
        stmt = (
            select(club.label("club"), total.label("total"))
            .where(*build_market_clauses(filters), column.isnot(None), club != "", Transfer.fee > 0)
            .group_by(club)
            .having(total > 0)
            .order_by(total.desc())
            .limit(RANKING_LIMIT)
        )
        rows = (await session.execute(stmt)).mappings().all()
        return {r["club"]: to_number(r["total"]) or 0.0 for r in rows}

    async def top_buyers_sellers(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        buyers = await self._club_totals(session, filters, Transfer.destination_club)
        sellers = await self._club_totals(session, filters, Transfer.origin_club)

        data = merge_dual_ranking(buyers, sellers, RANKING_LIMIT)
        if not data:
            return WidgetPayload.empty(NO_FEES)
        return WidgetPayload.chart("bar", data, "club", ["buyer_total", "seller_total"])

    async def top_leagues_countries(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        country = func.coalesce(func.nullif(func.trim(Transfer.destination_country), ""), "—")
        deals = func.count(Transfer.id)
        stmt = (
            select(country.label("label"), deals.label("deals"))
            .where(*build_market_clauses(filters))
            .group_by(country)
            .order_by(deals.desc())
            .limit(RANKING_LIMIT)
        )
        rows = (await session.execute(stmt)).mappings().all()
        if not rows:
            return WidgetPayload.empty(NO_TRANSFERS)

        data = [{"label": r["label"], "deals": int(r["deals"])} for r in rows]
        return WidgetPayload.chart("bar", data, "label", ["deals"])

    async def position_avg_fee(
        self, session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
    ) -> WidgetPayload:
        position = func.coalesce(func.nullif(func.trim(Transfer.athlete_position), ""), "—")
        avg_fee = func.avg(Transfer.fee)
        stmt = (
            select(
                position.label("position"),
                avg_fee.label("avg_fee"),
                func.count(Transfer.id).label("deals"),
            )
            .where(*build_market_clauses(filters), Transfer.fee > 0)
            .group_by(position)
            .order_by(avg_fee.desc())
        )
        rows = (await session.execute(stmt)).mappings().all()
        if not rows:
            return WidgetPayload.empty(NO_FEES)

        data = [
            {
                "position": r["position"],
                "avg_fee": round(to_number(r["avg_fee"]) or 0.0, 2),
                "deals": int(r["deals"]),
            }
            for r in rows
        ]
        return WidgetPayload.chart("bar", data, "position", ["avg_fee", "deals"])

    # ── KPIs ─────────────────────────────────────────────────

    async def compute_kpis(
        self,
        session: AsyncSession,
        filters: Optional[WidgetFilters] = None,
    ) -> Dict[str, KpiDatum]:
        """Market KPIs keyed ``market.<name>`` (shared with the KPI batch)."""
        stmt = select(
            func.count(Transfer.id),
            func.sum(Transfer.fee),
            func.avg(Transfer.fee),
        ).where(*build_market_clauses(filters or WidgetFilters()))
        count, total_fee, avg_fee = (await session.execute(stmt)).one()

        return {
            "market.deals_count": KpiDatum("Transações no mercado", int(count or 0)),
            "market.total_fee": KpiDatum(
                "Volume financeiro do mercado", to_number(total_fee) or 0.0, "EUR",
            ),
            "market.avg_fee": KpiDatum("Ticket médio", to_number(avg_fee) or 0.0, "EUR"),
        }

    def _kpi_widget(self, key: str) -> Handler:
        async def handler(
            session: AsyncSession, filters: WidgetFilters, ctx: LoadContext,
        ) -> WidgetPayload:
            kpis = await self.compute_kpis(session, filters)
            return WidgetPayload.kpi(kpis[key])
        return handler
