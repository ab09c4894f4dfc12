"""SQLModel implementation of the weekly summary repository."""

from __future__ import annotations

from typing import Callable, Sequence

from sqlmodel import Session, select

from ...logging_config import get_logger
from ...models.weekly_summary import WeeklySummary
from .errors import storage_errors

logger = get_logger(__name__)


class SQLModelWeeklySummaryRepository:
    """SQLModel-based weekly summary repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def save_all(self, summaries: Sequence[WeeklySummary], month_id: int) -> list[WeeklySummary]:
        """Replace every weekly row of ``month_id`` in a single transaction.

        Readers see either the old set or the new set, never a month with no
        weekly rows in between; a failing insert rolls the deletes back.
        """
        with storage_errors(f"replace weekly summaries for month id {month_id}", write=True):
            with self.session_factory() as session:
                existing = session.exec(
                    select(WeeklySummary).where(WeeklySummary.month_id == month_id)
                ).all()
                for row in existing:
                    session.delete(row)
                # Deletes must hit the database before inserts reuse their week keys.
                session.flush()

                rows = [
                    WeeklySummary(
                        month_id=month_id,
                        week_start_date=summary.week_start_date,
                        week_end_date=summary.week_end_date,
                        weekday_hours=summary.weekday_hours,
                        weekend_hours=summary.weekend_hours,
                        created_at=summary.created_at,
                    )
                    for summary in summaries
                ]
                session.add_all(rows)
                session.commit()
                for row in rows:
                    session.refresh(row)
                session.expunge_all()
        logger.info("Saved %d weekly summaries for month ID: %s", len(rows), month_id)
        return rows

    def fetch(self, month_id: int) -> list[WeeklySummary]:
        with storage_errors(f"fetch weekly summaries for month id {month_id}", write=False):
            with self.session_factory() as session:
                rows = list(
                    session.exec(
                        select(WeeklySummary)
                        .where(WeeklySummary.month_id == month_id)
                        .order_by(WeeklySummary.week_start_date)
                    ).all()
                )
                session.expunge_all()
                return rows

    def delete(self, month_id: int) -> None:
        with storage_errors(f"delete weekly summaries for month id {month_id}", write=True):
            with self.session_factory() as session:
                rows = session.exec(select(WeeklySummary).where(WeeklySummary.month_id == month_id)).all()
                for row in rows:
                    session.delete(row)
                session.commit()
        logger.info("Deleted weekly summaries for month ID: %s", month_id)

    def fetch_range(self, start: str, end: str) -> list[WeeklySummary]:
        """Weeks overlapping the inclusive ``[start, end]`` ISO date range."""
        with storage_errors(f"fetch weekly summaries {start}..{end}", write=False):
            with self.session_factory() as session:
                rows = list(
                    session.exec(
                        select(WeeklySummary)
                        .where(WeeklySummary.week_start_date <= end)
                        .where(WeeklySummary.week_end_date >= start)
                        .order_by(WeeklySummary.week_start_date, WeeklySummary.month_id)
                    ).all()
                )
                session.expunge_all()
                return rows
