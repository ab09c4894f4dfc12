"""Monthly hours, rates, and salary."""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from .rates import HourlyRates


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp used for created/updated columns."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class MonthlySummary(SQLModel, table=True):
    """Aggregated hours and computed salary for one calendar month."""

    __tablename__: ClassVar[str] = "monthly_summaries"

    id: Optional[int] = Field(default=None, primary_key=True)
    month: str = Field(nullable=False, unique=True, max_length=7, description="MM/YYYY")
    weekday_hours: float = Field(default=0.0, nullable=False)
    weekend_hours: float = Field(default=0.0, nullable=False)
    weekday_rate: float = Field(default=0.0, nullable=False)
    weekend_rate: float = Field(default=0.0, nullable=False)
    salary: float = Field(default=0.0, nullable=False)
    created_at: str = Field(default_factory=utc_timestamp, nullable=False)
    updated_at: str = Field(default_factory=utc_timestamp, nullable=False)

    @property
    def total_hours(self) -> float:
        return self.weekday_hours + self.weekend_hours

    @property
    def rates(self) -> HourlyRates:
        return HourlyRates(weekday=self.weekday_rate, weekend=self.weekend_rate)

    @property
    def formatted_month(self) -> str:
        """Render "12/2025" as "December 2025"; unknown shapes pass through."""

        month_part, _, year = self.month.partition("/")
        try:
            number = int(month_part)
        except ValueError:
            return self.month
        if 1 <= number <= 12 and year:
            return f"{calendar.month_name[number]} {year}"
        return self.month
