"""Concrete repository implementations using SQLModel."""

from .monthly_summary import SQLModelMonthlySummaryRepository
from .settings import SettingsRatePreferences, SQLModelSettingsRepository
from .weekly_summary import SQLModelWeeklySummaryRepository

__all__ = [
    "SQLModelMonthlySummaryRepository",
    "SQLModelSettingsRepository",
    "SQLModelWeeklySummaryRepository",
    "SettingsRatePreferences",
]
