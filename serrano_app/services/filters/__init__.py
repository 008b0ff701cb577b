"""
Filter parsing — query parameters → WidgetFilters.

Modules:
  base   : WidgetFilters dataclass (period + list filters).
  engine : FilterEngine — tolerant parsing of dates and comma lists.
"""

from serrano_app.services.filters.base import WidgetFilters
from serrano_app.services.filters.engine import FilterEngine, filter_engine

__all__ = ["WidgetFilters", "FilterEngine", "filter_engine"]
