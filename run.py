"""
Serrano Dashboard — Application Runner.

Usage:
    python run.py              → FastAPI data engine (port from API_PORT)
    python run.py api          → FastAPI data engine
    python run.py initdb       → Create the player / club / transfer tables
    python run.py snapshot     → Compose the saved dashboard once and print it
    python run.py snapshot market
                               → Same, switching the viewing scope first
"""

import asyncio
import json
import sys

import uvicorn

from serrano_app.core.config import configure_logging, settings


def run_fastapi() -> None:
    """Start the FastAPI data engine."""
    print(f"🚀 FastAPI → http://localhost:{settings.API_PORT}")
    if settings.DEBUG:
        print(f"📄 Docs    → http://localhost:{settings.API_PORT}/api/docs")
    uvicorn.run(
        "serrano_app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


def run_initdb() -> None:
    """Create every mapped table on the configured database."""
    from serrano_app.core.database import db_manager

    async def _create() -> None:
        try:
            await db_manager.create_all()
        finally:
            await db_manager.close()

    configure_logging()
    asyncio.run(_create())
    print("✅ Tables created")


def run_snapshot(scope: str = "") -> None:
    """Compose the persisted layout against a running API and print the cards."""
    from serrano_app.services.client import DashboardApiClient, DashboardComposer
    from serrano_app.services.layout import JsonFileLayoutStorage, LayoutStore

    async def _compose() -> None:
        store = LayoutStore(JsonFileLayoutStorage(settings.LAYOUT_STORAGE_DIR))
        composer = DashboardComposer(store, DashboardApiClient())
        try:
            if scope:
                await composer.set_scope(scope)
            else:
                await composer.refresh()
        finally:
            await composer.close()

        sep = "=" * 60
        print(sep)
        print(f"  Scope: {composer.scope}")
        print(sep)
        kpis = (composer.kpis.data or {}).get("kpis") or {}
        for key, datum in kpis.items():
            print(f"  {datum.get('label', key)}: {datum.get('value')}")
        print(sep)
        for card in composer.cards():
            line = f"  [{card['size']}] {card['title']} → {card['status']}"
            if card.get("message"):
                line += f" ({card['message']})"
            print(line)
        print(sep)
        print(json.dumps(store.layout.to_dict(), ensure_ascii=False))

    configure_logging()
    asyncio.run(_compose())


if __name__ == "__main__":
    mode = sys.argv[1].lower() if len(sys.argv) > 1 else "api"
    if mode == "api":
        run_fastapi()
    elif mode == "initdb":
        run_initdb()
    elif mode == "snapshot":
        run_snapshot(sys.argv[2] if len(sys.argv) > 2 else "")
    else:
        print(f"Unknown mode '{mode}'. Use: api | initdb | snapshot")
        sys.exit(1)
