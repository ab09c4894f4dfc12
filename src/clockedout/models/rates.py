"""Hourly rate pair."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class HourlyRates:
    """Weekday and weekend hourly rates.

    Bounds are enforced by ``services.salary.validate_rates``; this type only
    carries the pair around.
    """

    weekday: float
    weekend: float
