"""SQLModel tables and domain value objects."""

from .monthly_summary import MonthlySummary
from .rates import HourlyRates
from .report import MonthlyReport, ReportTotals, WeeklyReport
from .settings import AppSetting
from .time_entry import DayType, TimeEntry, WeekendPolicy, classify_day
from .weekly_summary import WeeklySummary

__all__ = [
    "AppSetting",
    "DayType",
    "HourlyRates",
    "MonthlyReport",
    "MonthlySummary",
    "ReportTotals",
    "TimeEntry",
    "WeekendPolicy",
    "WeeklyReport",
    "WeeklySummary",
    "classify_day",
]
