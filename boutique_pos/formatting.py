from __future__ import annotations

from decimal import Decimal


def money(value) -> float:
    """JSON-friendly rendering of a Numeric amount (None -> 0.0)."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.01")))


def pct_change(current: float, previous: float) -> float:
    """
    Period-over-period change in percent, 2dp.

    No previous activity but current activity counts as +100%.
    """
    if previous > 0:
        change = (current - previous) / previous * 100
    elif current > 0:
        change = 100.0
    else:
        change = 0.0
    return round(change, 2)


def format_currency(value, symbol: str) -> str:
    return f"{symbol} {money(value):,.2f}"
