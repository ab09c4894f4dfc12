"""Monthly report assembly and hour/money formatting helpers."""

from __future__ import annotations

from datetime import date

from ..domain.repositories import MonthlySummaryRepository, WeeklySummaryRepository
from ..errors import RecordNotFound
from ..models.monthly_summary import MonthlySummary
from ..models.report import MonthlyReport, WeeklyReport
from ..models.weekly_summary import WeeklySummary
from ..numbers import round_to


def format_decimal_hours(hours: float) -> str:
    """Always two decimals: ``27.5`` -> ``"27.50"``."""

    return f"{round_to(hours):.2f}"


def format_clean(value: float) -> str:
    """Up to two decimals without trailing zeros: ``15``, ``9.8``, ``9.83``."""

    text = f"{round_to(value):.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def format_hours_minutes(hours: float) -> str:
    """Render fractional hours as ``"2 h 30 m"``."""

    total_minutes = int(round_to(max(hours, 0.0) * 60, 0))
    whole_hours, minutes = divmod(total_minutes, 60)
    return f"{whole_hours} h {minutes} m"


def format_currency(amount: float) -> str:
    return f"{round_to(amount):,.2f}"


def weekly_report_from_row(row: WeeklySummary) -> WeeklyReport:
    return WeeklyReport(
        week_start=date.fromisoformat(row.week_start_date),
        week_end=date.fromisoformat(row.week_end_date),
        weekday_hours=row.weekday_hours,
        weekend_hours=row.weekend_hours,
    )


def _calendar_key(summary: MonthlySummary) -> tuple[int, int]:
    month, year = summary.month.split("/")
    return int(year), int(month)


class ReportService:
    """Build report objects from persisted months."""

    def __init__(self, monthly_repo: MonthlySummaryRepository, weekly_repo: WeeklySummaryRepository):
        self.monthly_repo = monthly_repo
        self.weekly_repo = weekly_repo

    def list_months(self) -> list[MonthlySummary]:
        """Stored months, newest calendar month first."""

        return sorted(self.monthly_repo.fetch_all(), key=_calendar_key, reverse=True)

    def monthly_report(self, month: str) -> MonthlyReport:
        summary = self.monthly_repo.fetch(month)
        if summary is None or summary.id is None:
            raise RecordNotFound(month)
        weekly = [weekly_report_from_row(row) for row in self.weekly_repo.fetch(summary.id)]
        return MonthlyReport(summary=summary, weekly_reports=weekly)
