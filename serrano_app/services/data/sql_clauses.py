"""
SQL clause builders — Pure functions for dynamic WHERE construction.

Single Responsibility: turn ``WidgetFilters`` into SQLAlchemy boolean
clauses for the roster (player) and market (transfer) tables.  No query
orchestration, no I/O.

Each builder returns a list of clauses meant to be splatted into
``select(...).where(*clauses)``; an empty list means "no filtering".
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from serrano_app.models.football_models import Player, Transfer
from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.widgets.helpers import MAX_PLAUSIBLE_AGE, MIN_PLAUSIBLE_AGE


# ─────────────────────────────────────────────────────────────────
#  PRIMITIVES
# ─────────────────────────────────────────────────────────────────

def build_in_clause(
    values: Optional[List[Any]],
    column: Any,
) -> Optional[ColumnElement]:
    """
    Build ``column IN (:p_0, :p_1, ...)``.

    Returns ``None`` if *values* is empty or ``None``.
    """
    if not values:
        return None
    return column.in_(list(values))


def apply_daterange(
    clauses: List[ColumnElement],
    filters: WidgetFilters,
    time_column: Any,
) -> List[ColumnElement]:
    """
    Append ``time_column >= :from`` / ``time_column <= :to`` (inclusive).

    Returns *clauses* unchanged if no period bound is present.
    """
    if filters.period_from is not None:
        clauses.append(time_column >= filters.period_from)
    if filters.period_to is not None:
        clauses.append(time_column <= filters.period_to)
    return clauses


def _extend(clauses: List[ColumnElement], clause: Optional[ColumnElement]) -> None:
    if clause is not None:
        clauses.append(clause)


# ─────────────────────────────────────────────────────────────────
#  ROSTER (player)
# ─────────────────────────────────────────────────────────────────

def build_roster_clauses(filters: WidgetFilters) -> List[ColumnElement]:
    """Categorical filters over the player table."""
    clauses: List[ColumnElement] = []
    _extend(clauses, build_in_clause(filters.position, Player.position))
    _extend(clauses, build_in_clause(filters.agency, Player.agency))
    _extend(clauses, build_in_clause(filters.situation, Player.situation))
    _extend(clauses, build_in_clause(filters.foot, Player.dominant_foot))
    return clauses


# ─────────────────────────────────────────────────────────────────
#  MARKET (transfer)
# ─────────────────────────────────────────────────────────────────

def build_club_clause(clubs: Optional[List[str]]) -> Optional[ColumnElement]:
    """A club matches as either side of the deal."""
    if not clubs:
        return None
    return or_(
        Transfer.origin_club.in_(list(clubs)),
        Transfer.destination_club.in_(list(clubs)),
    )


def build_market_clauses(filters: WidgetFilters) -> List[ColumnElement]:
    """Period + categorical filters over the transfer table."""
    clauses: List[ColumnElement] = []
    apply_daterange(clauses, filters, Transfer.transfer_date)
    _extend(clauses, build_in_clause(filters.position, Transfer.athlete_position))
    _extend(clauses, build_in_clause(filters.country, Transfer.destination_country))
    _extend(clauses, build_club_clause(filters.club))
    _extend(clauses, build_in_clause(filters.league, Transfer.destination_league))
    return clauses


# ─────────────────────────────────────────────────────────────────
#  SANITY
# ─────────────────────────────────────────────────────────────────

def build_age_sanity_clause(column: Any) -> ColumnElement:
    """Drop implausible ages before binning or statistics."""
    return column.between(MIN_PLAUSIBLE_AGE, MAX_PLAUSIBLE_AGE)
