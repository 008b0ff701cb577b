"""
Renderer heuristics — chart shape selection and display formatting.

Modules:
  formatting     : Number, currency and KPI formatters.
  chart_selector : select_chart — payload + size → ChartSpec.
"""

from serrano_app.services.render.chart_selector import ChartSpec, select_chart

__all__ = ["ChartSpec", "select_chart"]
