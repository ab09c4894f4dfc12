"""Numeric helpers shared by aggregation, salary, and reporting."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MS_PER_HOUR = 3_600_000


def round_to(value: float, places: int = 2) -> float:
    """Round half away from zero on the decimal representation of ``value``.

    ``round()`` uses banker's rounding on the binary float, which turns
    ``2.675`` into ``2.67``; hours and money are rounded the way people do it.
    """

    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def ms_to_hours(duration_ms: int) -> float:
    """Convert a millisecond duration to fractional hours."""

    return duration_ms / MS_PER_HOUR
