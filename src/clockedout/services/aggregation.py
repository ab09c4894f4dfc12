"""Weekday/weekend classification and weekly/monthly hour aggregation."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, Iterable, Optional, Sequence

from ..logging_config import get_logger
from ..models.report import WeeklyReport
from ..models.time_entry import DayType, TimeEntry, WeekendPolicy, classify_day
from ..numbers import round_to

logger = get_logger(__name__)

SUNDAY = 6  # date.weekday() numbering


@dataclass(frozen=True, slots=True)
class AggregationResult:
    """Month key, monthly totals, and the sorted weekly breakdown of an import."""

    month_key: str
    weekday_hours: float
    weekend_hours: float
    weekly_reports: list[WeeklyReport] = field(default_factory=list)
    entry_count: int = 0

    @property
    def total_hours(self) -> float:
        return round_to(self.weekday_hours + self.weekend_hours)


def month_key_for(moment: datetime | date) -> str:
    """Format as the ``MM/YYYY`` key used to identify stored months."""

    return f"{moment.month:02d}/{moment.year:04d}"


class TimeAggregator:
    """Classify entries and roll them up into weeks and a month.

    All calendar math happens in ``tz`` (``None`` means the host zone); weeks
    begin on ``week_start`` (``date.weekday()`` numbering, Sunday by default)
    and span seven days.
    """

    def __init__(
        self,
        *,
        tz: Optional[tzinfo] = timezone.utc,
        policy: WeekendPolicy = WeekendPolicy.FRIDAY_SATURDAY,
        week_start: int = SUNDAY,
        today: Callable[[], date] | None = None,
    ):
        if not 0 <= week_start <= 6:
            raise ValueError(f"week_start must be 0-6, got {week_start}")
        self.tz = tz
        self.policy = policy
        self.week_start = week_start
        self._today = today or (lambda: datetime.now(self.tz).date())

    def classify(self, moment: datetime) -> DayType:
        return classify_day(moment, tz=self.tz, policy=self.policy)

    def local_date(self, moment: datetime) -> date:
        return moment.astimezone(self.tz).date()

    def start_of_week(self, day: date) -> date:
        return day - timedelta(days=(day.weekday() - self.week_start) % 7)

    def week_bounds(self, day: date) -> tuple[date, date]:
        start = self.start_of_week(day)
        return start, start + timedelta(days=6)

    def split_hours(self, entries: Iterable[TimeEntry]) -> tuple[float, float]:
        """Unrounded (weekday, weekend) hour sums."""

        weekday = 0.0
        weekend = 0.0
        for entry in entries:
            if self.classify(entry.start) is DayType.WEEKDAY:
                weekday += entry.hours
            else:
                weekend += entry.hours
        return weekday, weekend

    def group_by_week(self, entries: Iterable[TimeEntry]) -> dict[date, list[TimeEntry]]:
        grouped: dict[date, list[TimeEntry]] = defaultdict(list)
        for entry in entries:
            grouped[self.start_of_week(self.local_date(entry.start))].append(entry)
        return dict(grouped)

    def weekly_hours(self, entries: Sequence[TimeEntry]) -> WeeklyReport:
        """Report for entries sharing one week; empty input anchors to today's week."""

        anchor = self.local_date(entries[0].start) if entries else self._today()
        start, end = self.week_bounds(anchor)
        weekday, weekend = self.split_hours(entries)
        return WeeklyReport(week_start=start, week_end=end, weekday_hours=weekday, weekend_hours=weekend)

    def weekly_reports(self, entries: Sequence[TimeEntry]) -> list[WeeklyReport]:
        """Weekly breakdown sorted by week start.

        An empty input yields one zero-valued report for the current week;
        callers should not treat that report as meaningful data.
        """

        if not entries:
            return [self.weekly_hours([])]
        reports = [self.weekly_hours(bucket) for bucket in self.group_by_week(entries).values()]
        reports.sort(key=lambda report: report.week_start)
        return reports

    def monthly_totals(self, reports: Iterable[WeeklyReport]) -> tuple[float, float]:
        weekday = 0.0
        weekend = 0.0
        for report in reports:
            weekday += report.weekday_hours
            weekend += report.weekend_hours
        return round_to(weekday), round_to(weekend)

    def determine_month(self, entries: Sequence[TimeEntry]) -> str | None:
        """Month key of the first entry in file order."""

        if not entries:
            return None
        return month_key_for(self.local_date(entries[0].start))

    def aggregate(self, entries: Sequence[TimeEntry]) -> AggregationResult:
        reports = self.weekly_reports(entries)
        weekday, weekend = self.monthly_totals(reports)
        month_key = self.determine_month(entries) or month_key_for(self._today())

        months = {month_key_for(self.local_date(entry.start)) for entry in entries}
        if len(months) > 1:
            logger.warning(
                "Entries span %d months; attributing all hours to %s",
                len(months),
                month_key,
                extra={"months": sorted(months)},
            )

        logger.info(
            "Aggregated %d entries into %d weeks for %s",
            len(entries),
            len(reports),
            month_key,
            extra={"weekday_hours": weekday, "weekend_hours": weekend},
        )
        return AggregationResult(
            month_key=month_key,
            weekday_hours=weekday,
            weekend_hours=weekend,
            weekly_reports=reports,
            entry_count=len(entries),
        )
