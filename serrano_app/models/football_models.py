"""
Club Database Models — players, clubs and transfers.

Tables: club, player, transfer.

Only the columns the dashboard aggregations read are mapped; the CRUD
screens that own these tables live outside this package.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from serrano_app.core.database import Base


class Club(Base):
    """Football club with location data used by the geo map."""
    __tablename__ = "club"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500))
    country_code: Mapped[Optional[str]] = mapped_column(String(2))
    state_code: Mapped[Optional[str]] = mapped_column(String(2))

    players: Mapped[List["Player"]] = relationship(back_populates="club")


class Player(Base):
    """Roster player. ``market_value`` is stored in millions of EUR."""
    __tablename__ = "player"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer)
    position: Mapped[Optional[str]] = mapped_column(String(50))
    market_value: Mapped[Optional[float]] = mapped_column(
        Numeric(12, 3, asdecimal=False)
    )
    dominant_foot: Mapped[Optional[str]] = mapped_column(String(20))
    agency: Mapped[Optional[str]] = mapped_column(String(150))
    situation: Mapped[Optional[str]] = mapped_column(String(50))
    photo_url: Mapped[Optional[str]] = mapped_column(String(500))
    club_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("club.id")
    )

    club: Mapped[Optional["Club"]] = relationship(back_populates="players")


class Transfer(Base):
    """Market transfer record. ``fee`` is stored in raw EUR."""
    __tablename__ = "transfer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    athlete_name: Mapped[Optional[str]] = mapped_column(String(150))
    athlete_age: Mapped[Optional[int]] = mapped_column(Integer)
    athlete_position: Mapped[Optional[str]] = mapped_column(String(50))
    origin_club: Mapped[Optional[str]] = mapped_column(String(150))
    origin_country: Mapped[Optional[str]] = mapped_column(String(100))
    destination_club: Mapped[Optional[str]] = mapped_column(String(150))
    destination_country: Mapped[Optional[str]] = mapped_column(String(100))
    destination_league: Mapped[Optional[str]] = mapped_column(String(150))
    transfer_date: Mapped[Optional[date]] = mapped_column(Date)
    fee: Mapped[Optional[float]] = mapped_column(Numeric(16, 2, asdecimal=False))
