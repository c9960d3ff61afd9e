from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")
_UNIT = Decimal("1")


def round2(value: float) -> float:
    """Round half-up to 2 decimals (0.125 -> 0.13)."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def round_whole(value: float) -> float:
    """Round half-up to a whole amount (2.5 -> 3)."""
    return float(Decimal(str(value)).quantize(_UNIT, rounding=ROUND_HALF_UP))
