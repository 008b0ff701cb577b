"""
Dashboard client — API access and the composition engine.

Modules:
  api_client : DashboardApiClient — httpx wrapper that never raises.
  composer   : DashboardComposer — active widget list, fetches, stale-response guard.
"""

from serrano_app.services.client.api_client import DashboardApiClient
from serrano_app.services.client.composer import DashboardComposer, WidgetState

__all__ = ["DashboardApiClient", "DashboardComposer", "WidgetState"]
