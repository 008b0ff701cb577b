"""
Application configuration — Pydantic Settings.

Loads from .env with strict validation. Single source of truth
for all environment-dependent values (database, API, client, logging).
"""

import logging
import sys
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    APP_NAME: str = "SerranoDashboard"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # ── API server ───────────────────────────────────────────────
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_BASE_URL: str = "http://127.0.0.1:8000"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # ── Database (players / clubs / transfers) ───────────────────
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "serrano"
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    # Full SQLAlchemy URL; overrides the host fields when set
    DATABASE_URL: str = ""

    # ── Dashboard client ─────────────────────────────────────────
    CLIENT_TIMEOUT_SECONDS: float = 10.0
    LAYOUT_STORAGE_DIR: str = ".dashboard"

    # ── Logging ──────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # ── URL Builders ─────────────────────────────────────────────

    def _build_url(self, driver: str, user: str, password: str,
                   host: str, port: int, db_name: str) -> str:
        """Build a SQLAlchemy database URL."""
        cred = f"{user}:{password}" if password else user
        return f"mysql+{driver}://{cred}@{host}:{port}/{db_name}"

    @property
    def db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return self._build_url(
            "aiomysql", self.DB_USER, self.DB_PASSWORD,
            self.DB_HOST, self.DB_PORT, self.DB_NAME,
        )


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()


def configure_logging() -> None:
    """Configure root logging from ``LOG_LEVEL`` / ``LOG_FILE``."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.LOG_FILE:
        Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    # Quiet noisy libraries unless debugging
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
