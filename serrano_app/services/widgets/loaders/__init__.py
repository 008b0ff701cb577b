"""Data-family loaders — one per widget id prefix (overview., serrano., market.)."""

from serrano_app.services.widgets.loaders.geo import GeoLoader, build_geo_aggregate
from serrano_app.services.widgets.loaders.market import MarketLoader
from serrano_app.services.widgets.loaders.roster import RosterLoader

__all__ = ["GeoLoader", "MarketLoader", "RosterLoader", "build_geo_aggregate"]
