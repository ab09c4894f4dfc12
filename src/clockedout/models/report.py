"""Report value objects handed to renderers and exporters."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date

from ..numbers import round_to
from .monthly_summary import MonthlySummary


@dataclass(frozen=True, slots=True)
class WeeklyReport:
    """Weekday/weekend hours for one week, rounded to 2 decimals."""

    week_start: date
    week_end: date
    weekday_hours: float
    weekend_hours: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "weekday_hours", round_to(self.weekday_hours))
        object.__setattr__(self, "weekend_hours", round_to(self.weekend_hours))

    @property
    def total_hours(self) -> float:
        return round_to(self.weekday_hours + self.weekend_hours)

    @property
    def week_range_label(self) -> str:
        """Compact label such as ``1-7/12`` (start day, end day, start month)."""

        return f"{self.week_start.day}-{self.week_end.day}/{self.week_start.month}"

    @property
    def display_label(self) -> str:
        """Readable label such as ``December 1 - 7``."""

        return f"{calendar.month_name[self.week_start.month]} {self.week_start.day} - {self.week_end.day}"


@dataclass(frozen=True, slots=True)
class ReportTotals:
    weekday_hours: float
    weekend_hours: float
    total_hours: float
    salary: float

    @classmethod
    def from_summary(cls, summary: MonthlySummary) -> "ReportTotals":
        return cls(
            weekday_hours=round_to(summary.weekday_hours),
            weekend_hours=round_to(summary.weekend_hours),
            total_hours=round_to(summary.weekday_hours + summary.weekend_hours),
            salary=round_to(summary.salary),
        )


@dataclass(slots=True)
class MonthlyReport:
    """A stored month with its ordered weekly breakdown and totals."""

    summary: MonthlySummary
    weekly_reports: list[WeeklyReport] = field(default_factory=list)
    totals: ReportTotals | None = None

    def __post_init__(self) -> None:
        if self.totals is None:
            self.totals = ReportTotals.from_summary(self.summary)
