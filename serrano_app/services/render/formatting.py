"""
Display formatters for axes, tooltips and KPI cards.

Currency is EUR unless stated otherwise.  Axis labels use the compact
form (``€4.2M``); tooltips and KPI cards use the full form
(``€4,200,000.00``).
"""

from __future__ import annotations

import math
from typing import Any, Optional

CURRENCY_SYMBOLS = {"EUR": "€", "BRL": "R$", "USD": "$"}

_COMPACT_STEPS = (
    (1_000_000_000_000, "T"),
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)

PLACEHOLDER = "—"


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper() + " ")


def format_number(value: Any, decimals: int = 0) -> str:
    """``1234567`` → ``"1,234,567"``; fractional values keep one decimal by default."""
    number = _finite(value)
    if number is None:
        return PLACEHOLDER
    if decimals == 0 and not number.is_integer():
        decimals = 1
    return f"{number:,.{decimals}f}"


def format_currency(value: Any, currency: str = "EUR") -> str:
    """``4200000`` → ``"€4,200,000.00"``."""
    number = _finite(value)
    if number is None:
        return PLACEHOLDER
    sign = "-" if number < 0 else ""
    return f"{sign}{_symbol(currency)}{abs(number):,.2f}"


def format_compact(value: Any) -> str:
    """``4200000`` → ``"4.2M"``, ``1500`` → ``"1.5K"``, ``950`` → ``"950"``."""
    number = _finite(value)
    if number is None:
        return PLACEHOLDER
    magnitude = abs(number)
    for threshold, suffix in _COMPACT_STEPS:
        if magnitude >= threshold:
            scaled = f"{number / threshold:.1f}".rstrip("0").rstrip(".")
            return f"{scaled}{suffix}"
    return f"{number:.1f}".rstrip("0").rstrip(".")


def format_money_axis(value: Any, currency: str = "EUR") -> str:
    """Compact currency for axis ticks: ``"€4.2M"``."""
    number = _finite(value)
    if number is None:
        return PLACEHOLDER
    sign = "-" if number < 0 else ""
    return f"{sign}{_symbol(currency)}{format_compact(abs(number))}"


def format_percent(value: Any, decimals: int = 1) -> str:
    """Ratio in [0, 1] → ``"42.0%"``."""
    number = _finite(value)
    if number is None:
        return PLACEHOLDER
    return f"{number * 100:.{decimals}f}%"


def format_kpi_value(value: Any, unit: Optional[str] = None) -> str:
    """KPI card text by unit: currency codes, ``%`` or a plain number."""
    if _finite(value) is None:
        return PLACEHOLDER
    if unit and unit.upper() in CURRENCY_SYMBOLS:
        return format_currency(value, unit)
    if unit == "%":
        return format_percent(value)
    return format_number(value)
