from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 2) -> float:
    """Round a currency amount half-up (2.675 -> 2.68, 0.5 -> 1), never banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def round_to_unit(value: float) -> int:
    return int(round_half_up(value, 0))
