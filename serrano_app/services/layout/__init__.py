"""
Dashboard layout persistence.

Modules:
  storage : Key/value backends (in-memory, JSON files).
  store   : DashboardLayout + LayoutStore (sanitize, load, save, mutations).

Usage::

    from serrano_app.services.layout import JsonFileLayoutStorage, LayoutStore

    store = LayoutStore(JsonFileLayoutStorage(".dashboard"))
    layout = store.load_or_default()
"""

from serrano_app.services.layout.storage import JsonFileLayoutStorage, MemoryLayoutStorage
from serrano_app.services.layout.store import DashboardLayout, LayoutStore

__all__ = ["DashboardLayout", "LayoutStore", "JsonFileLayoutStorage", "MemoryLayoutStorage"]
