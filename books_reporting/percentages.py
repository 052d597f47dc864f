"""
Percentage-of-base figures for report columns.

percentage_of(amount, base) is amount / |base| * 100, so the sign of the
amount survives a negative base.  A zero base yields the NO_DATA sentinel
instead of dividing.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Final


class _NoData(Enum):
    NO_DATA = "no_data"

    def __repr__(self) -> str:
        return "NO_DATA"

    def __bool__(self) -> bool:
        return False


NO_DATA: Final = _NoData.NO_DATA

Percentage = Decimal | _NoData

NO_DATA_DISPLAY = "—"

_HUNDRED = Decimal("100")


def percentage_of(amount: Decimal, base: Decimal) -> Percentage:
    """Percentage of ``amount`` relative to ``|base|``, or NO_DATA if base is zero."""
    if base == 0:
        return NO_DATA
    return amount / abs(base) * _HUNDRED


def format_percentage(value: Percentage, places: int = 1) -> str:
    """Render as "12.5%"; NO_DATA renders as an em dash."""
    if value is NO_DATA:
        return NO_DATA_DISPLAY
    quantum = Decimal(1).scaleb(-places)
    return f"{value.quantize(quantum, rounding=ROUND_HALF_UP)}%"
