"""Per-week hour breakdown belonging to a monthly summary."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from .monthly_summary import utc_timestamp


class WeeklySummary(SQLModel, table=True):
    """Weekday/weekend hours for one calendar week within one month."""

    __tablename__: ClassVar[str] = "weekly_summaries"
    __table_args__ = (
        Index("idx_weekly_summaries_month_week", "month_id", "week_start_date", unique=True),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    month_id: int = Field(foreign_key="monthly_summaries.id", ondelete="CASCADE", nullable=False)
    week_start_date: str = Field(nullable=False, max_length=10, description="ISO-8601 date")
    week_end_date: str = Field(nullable=False, max_length=10, description="ISO-8601 date")
    weekday_hours: float = Field(default=0.0, nullable=False)
    weekend_hours: float = Field(default=0.0, nullable=False)
    created_at: str = Field(default_factory=utc_timestamp, nullable=False)

    @property
    def total_hours(self) -> float:
        return self.weekday_hours + self.weekend_hours
