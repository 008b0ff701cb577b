"""
Pytest Configuration and Fixtures
=================================

Shared fixtures: a temporary SQLite club database seeded through the
ORM models, services bound to it, and an ASGI-backed HTTP client.

Seeded data (see ``seeded_db``):
- 3 clubs   (Serrano FC / BR-RJ, Benfica / PT, Santos / BR without state)
- 5 players (ages 11, 12, 27, 28 and an implausible 60)
- 4 transfers (3 with fees, 1 without fee and with an implausible age)
"""

from datetime import date
from typing import AsyncGenerator, Iterable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from serrano_app.api.v1.dependencies import get_dispatcher, get_kpi_service
from serrano_app.core.database import DatabaseManager
from serrano_app.main import app
from serrano_app.models.football_models import Club, Player, Transfer
from serrano_app.services.layout.storage import MemoryLayoutStorage
from serrano_app.services.layout.store import LayoutStore
from serrano_app.services.widgets.dispatcher import WidgetDispatcher
from serrano_app.services.widgets.kpis import KpiService
from serrano_app.services.widgets.loaders.geo import GeoLoader
from serrano_app.services.widgets.loaders.market import MarketLoader
from serrano_app.services.widgets.loaders.roster import RosterLoader


async def seed(db: DatabaseManager, rows: Iterable) -> None:
    """Insert ORM instances in one committed session."""
    async with db.get_session() as session:
        session.add_all(list(rows))


def standard_rows() -> list:
    serrano = Club(id="c1", name="Serrano FC", logo_url="/media/serrano.png",
                   country_code="BR", state_code="rj")
    benfica = Club(id="c2", name="Benfica", country_code="PT")
    santos = Club(id="c3", name="Santos", country_code="br", state_code=None)

    players = [
        Player(id="p1", name="Ana Lima", age=11, position="Atacante", market_value=2,
               dominant_foot="Direito", agency="Alpha Sports Management Group",
               situation="Ativo", photo_url="/media/p1.png", club_id="c1"),
        Player(id="p2", name="Bruno Dias", age=12, position="Meia", market_value=2.5,
               dominant_foot="Esquerdo", agency="Alpha Sports Management Group",
               situation="Ativo", club_id="c2"),
        Player(id="p3", name="Caio Souza", age=27, position="Zagueiro", market_value=1,
               dominant_foot="Direito", agency="Beta", situation="Emprestado",
               club_id="c3"),
        Player(id="p4", name="Davi Rocha", age=28, position="Atacante", market_value=None,
               dominant_foot="Direito", agency=None, situation="Ativo", club_id=None),
        Player(id="p5", name="Eva Nunes", age=60, position="Goleiro", market_value=0.5,
               dominant_foot="Direito", agency="Gamma", situation="Ativo", club_id="c1"),
    ]

    transfers = [
        Transfer(athlete_name="Atleta Um", athlete_age=24, athlete_position="Atacante",
                 origin_club="Club3", origin_country="Brasil",
                 destination_club="Club1", destination_country="Portugal",
                 destination_league="Liga Portugal",
                 transfer_date=date(2023, 1, 15), fee=7_000_000),
        Transfer(athlete_name="Atleta Dois", athlete_age=19, athlete_position="Meia",
                 origin_club="Club2", origin_country="Brasil",
                 destination_club="Club1", destination_country="Portugal",
                 destination_league="Liga Portugal",
                 transfer_date=date(2023, 3, 10), fee=3_000_000),
        Transfer(athlete_name="Atleta Três", athlete_age=31, athlete_position="Atacante",
                 origin_club=None, origin_country=None,
                 destination_club="Club2", destination_country="Brasil",
                 destination_league="Brasileirão",
                 transfer_date=date(2024, 1, 5), fee=5_000_000),
        Transfer(athlete_name="Atleta Quatro", athlete_age=70, athlete_position="Goleiro",
                 origin_club="Club5", origin_country="Brasil",
                 destination_club="Club6", destination_country="",
                 destination_league=None,
                 transfer_date=date(2024, 2, 1), fee=None),
    ]
    return [serrano, benfica, santos, *players, *transfers]


@pytest_asyncio.fixture(scope="function")
async def db(tmp_path) -> AsyncGenerator[DatabaseManager, None]:
    """Empty club database in a temporary SQLite file."""
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'club.db'}", echo=False)
    await manager.create_all()
    yield manager
    await manager.close()


@pytest_asyncio.fixture(scope="function")
async def seeded_db(db: DatabaseManager) -> DatabaseManager:
    await seed(db, standard_rows())
    return db


@pytest.fixture
def dispatcher(seeded_db: DatabaseManager) -> WidgetDispatcher:
    return WidgetDispatcher(
        geo=GeoLoader(seeded_db),
        roster=RosterLoader(seeded_db),
        market=MarketLoader(seeded_db),
    )


@pytest.fixture
def kpi_service(seeded_db: DatabaseManager) -> KpiService:
    return KpiService(seeded_db)


@pytest.fixture
def layout_store() -> LayoutStore:
    return LayoutStore(MemoryLayoutStorage())


@pytest_asyncio.fixture(scope="function")
async def client(dispatcher, kpi_service) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, services pointed at the seeded database."""
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_kpi_service] = lambda: kpi_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
