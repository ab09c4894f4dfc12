"""Salary computation and rate/hour input validation."""

from __future__ import annotations

import math
import re

from ..errors import InvalidRate, NegativeValue, OutOfRange, ZeroValue
from ..models.monthly_summary import MonthlySummary, utc_timestamp
from ..models.rates import HourlyRates
from ..numbers import round_to

MIN_RATE = 0.01
MAX_RATE = 10_000.0
MAX_MONTHLY_HOURS = 1_000.0

_MONTH_KEY_PATTERN = re.compile(r"^\d{2}/\d{4}$")


def _coerce_number(value: object) -> float:
    if isinstance(value, bool):
        raise InvalidRate(value)
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidRate(value) from exc
    if math.isnan(number):
        raise InvalidRate(value)
    return number


def validate_rate(value: object, field_name: str = "Rate") -> float:
    """Return ``value`` as a float when it lies in (0, 10000]."""

    rate = _coerce_number(value)
    if rate < 0:
        raise NegativeValue(field_name)
    if rate == 0:
        raise ZeroValue(field_name)
    if rate > MAX_RATE:
        raise OutOfRange(field_name, MIN_RATE, MAX_RATE)
    return rate


def validate_rates(rates: HourlyRates) -> HourlyRates:
    return HourlyRates(
        weekday=validate_rate(rates.weekday, "Weekday Rate"),
        weekend=validate_rate(rates.weekend, "Weekend Rate"),
    )


def validate_hours(value: object, field_name: str = "Hours") -> float:
    """Hours must be non-negative and at most 1000 per month."""

    hours = _coerce_number(value)
    if hours < 0:
        raise NegativeValue(field_name)
    if hours > MAX_MONTHLY_HOURS:
        raise OutOfRange(field_name, 0, MAX_MONTHLY_HOURS)
    return hours


def is_valid_month_key(month: str) -> bool:
    """True for keys shaped like ``MM/YYYY``."""

    return bool(_MONTH_KEY_PATTERN.match(month or ""))


def salary_formula(
    weekday_hours: float, weekend_hours: float, weekday_rate: float, weekend_rate: float
) -> float:
    """Unvalidated salary arithmetic, rounded to cents."""

    return round_to(weekday_hours * weekday_rate + weekend_hours * weekend_rate)


def calculate_salary(
    weekday_hours: float, weekend_hours: float, weekday_rate: float, weekend_rate: float
) -> float:
    """``weekday_hours * weekday_rate + weekend_hours * weekend_rate`` rounded to 2 places.

    Raises:
        ValidationError: when either rate is outside (0, 10000].
    """

    weekday_rate = validate_rate(weekday_rate, "Weekday Rate")
    weekend_rate = validate_rate(weekend_rate, "Weekend Rate")
    return salary_formula(weekday_hours, weekend_hours, weekday_rate, weekend_rate)


class SalaryCalculator:
    """Injectable salary service used by repositories and the import workflow."""

    def calculate(self, weekday_hours: float, weekend_hours: float, rates: HourlyRates) -> float:
        return calculate_salary(weekday_hours, weekend_hours, rates.weekday, rates.weekend)

    def apply(self, summary: MonthlySummary) -> MonthlySummary:
        """Round the stored hours and recompute salary from the row's own rates."""

        summary.weekday_hours = round_to(summary.weekday_hours)
        summary.weekend_hours = round_to(summary.weekend_hours)
        summary.salary = salary_formula(
            summary.weekday_hours,
            summary.weekend_hours,
            summary.weekday_rate,
            summary.weekend_rate,
        )
        summary.updated_at = utc_timestamp()
        return summary
