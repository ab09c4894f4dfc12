"""Repository protocol definitions for domain layer."""

from .monthly_summary import MonthlySummaryRepository
from .preferences import RatePreferences
from .weekly_summary import WeeklySummaryRepository

__all__ = [
    "MonthlySummaryRepository",
    "RatePreferences",
    "WeeklySummaryRepository",
]
