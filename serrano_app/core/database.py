"""
DatabaseManager — Async connection management for the club database.

Key design decisions:
- NullPool: each request opens/closes its own connection, the loaders
  issue a handful of short aggregate queries per widget.
- Lazy engine: created on first use, not at import time.
- Injectable URL: tests and tools build their own manager against any
  SQLAlchemy async URL (``sqlite+aiosqlite:///...`` included).
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from serrano_app.core.config import settings


# ── Declarative base for players / clubs / transfers ─────────────
Base = declarative_base()


def _engine_kwargs(url: str) -> Dict[str, Any]:
    """Engine kwargs for a URL (MySQL needs an explicit charset)."""
    kwargs: Dict[str, Any] = {"poolclass": NullPool}
    if url.startswith("mysql"):
        kwargs["connect_args"] = {"charset": "utf8mb4"}
    return kwargs


class DatabaseManager:
    """
    Centralised database connection manager.

    Responsibilities:
    - One async engine for the club database.
    - Context-managed sessions with auto-commit/rollback.
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None) -> None:
        self._url = url
        self._echo = settings.DEBUG if echo is None else echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def url(self) -> str:
        return self._url or settings.db_url

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self.url,
                echo=self._echo,
                **_engine_kwargs(self.url),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    # ─────────────────────────────────────────────────────────────
    #  SESSION CONTEXT MANAGER
    # ─────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Async session for the club database."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # ─────────────────────────────────────────────────────────────
    #  SCHEMA / CLEANUP
    # ─────────────────────────────────────────────────────────────

    async def create_all(self) -> None:
        """Create every mapped table (local development and tests)."""
        # Import registers the models on ``Base.metadata``
        from serrano_app.models import football_models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine on shutdown."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


# ── Global singleton ─────────────────────────────────────────────
db_manager = DatabaseManager()


# ── FastAPI dependency injection ─────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI Depends() for the club database."""
    async with db_manager.get_session() as session:
        yield session
