"""Transient time entries produced by CSV ingestion."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Optional

from ..numbers import ms_to_hours


class DayType(str, enum.Enum):
    WEEKDAY = "weekday"
    WEEKEND = "weekend"


class WeekendPolicy(str, enum.Enum):
    """Which days count as weekend for rate purposes."""

    # Day numbers 1-5 (Sunday=1 ... Saturday=7) are weekdays: Sun-Thu work,
    # Fri-Sat weekend. This is what historical imports were computed with.
    FRIDAY_SATURDAY = "friday_saturday"
    SATURDAY_SUNDAY = "saturday_sunday"


def sunday_based_day_number(moment: datetime) -> int:
    """Day of week with Sunday=1 ... Saturday=7."""

    return moment.isoweekday() % 7 + 1


def classify_day(
    moment: datetime,
    *,
    tz: Optional[tzinfo],
    policy: WeekendPolicy = WeekendPolicy.FRIDAY_SATURDAY,
) -> DayType:
    """Classify an instant as weekday or weekend work in the given timezone.

    ``tz=None`` uses the host zone, including its daylight-saving rules.
    """

    local = moment.astimezone(tz)
    if policy is WeekendPolicy.FRIDAY_SATURDAY:
        return DayType.WEEKDAY if 1 <= sunday_based_day_number(local) <= 5 else DayType.WEEKEND
    return DayType.WEEKDAY if local.isoweekday() <= 5 else DayType.WEEKEND


@dataclass(frozen=True, slots=True)
class TimeEntry:
    """One tracked interval: an absolute start instant and a duration."""

    start: datetime
    duration_ms: int
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def hours(self) -> float:
        return ms_to_hours(self.duration_ms)

    def day_type(
        self, *, tz: Optional[tzinfo], policy: WeekendPolicy = WeekendPolicy.FRIDAY_SATURDAY
    ) -> DayType:
        return classify_day(self.start, tz=tz, policy=policy)
