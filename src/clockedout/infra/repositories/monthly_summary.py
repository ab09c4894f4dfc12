"""SQLModel implementation of the monthly summary repository."""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...logging_config import get_logger
from ...models.monthly_summary import MonthlySummary
from ...models.rates import HourlyRates
from ...services.salary import SalaryCalculator
from .errors import storage_errors

logger = get_logger(__name__)


class SQLModelMonthlySummaryRepository:
    """SQLModel-based monthly summary repository implementation."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        calculator: SalaryCalculator | None = None,
    ):
        """Initialize with a session factory."""
        self.session_factory = session_factory
        self.calculator = calculator or SalaryCalculator()

    def _select_month(self, session: Session, month: str) -> Optional[MonthlySummary]:
        return session.exec(select(MonthlySummary).where(MonthlySummary.month == month)).first()

    def save(self, summary: MonthlySummary) -> MonthlySummary:
        """Upsert by month key.

        Salary is always recomputed from the hours and rates being stored, so
        a row can never hold a salary that disagrees with its other columns.
        """
        with storage_errors(f"save monthly summary {summary.month}", write=True):
            with self.session_factory() as session:
                row = self._select_month(session, summary.month)
                if row is None:
                    row = MonthlySummary(month=summary.month, created_at=summary.created_at)
                    session.add(row)
                row.weekday_hours = summary.weekday_hours
                row.weekend_hours = summary.weekend_hours
                row.weekday_rate = summary.weekday_rate
                row.weekend_rate = summary.weekend_rate
                self.calculator.apply(row)
                session.commit()
                session.refresh(row)
                session.expunge(row)
        logger.info(
            "Saved monthly summary for month: %s",
            row.month,
            extra={"month_id": row.id, "salary": row.salary},
        )
        return row

    def fetch(self, month: str) -> Optional[MonthlySummary]:
        with storage_errors(f"fetch monthly summary {month}", write=False):
            with self.session_factory() as session:
                row = self._select_month(session, month)
                if row is not None:
                    session.expunge(row)
                return row

    def fetch_all(self) -> list[MonthlySummary]:
        """Return summaries ordered by month key descending."""
        with storage_errors("fetch all monthly summaries", write=False):
            with self.session_factory() as session:
                rows = list(
                    session.exec(select(MonthlySummary).order_by(MonthlySummary.month.desc())).all()  # type: ignore[attr-defined]
                )
                session.expunge_all()
                return rows

    def exists(self, month: str) -> bool:
        with storage_errors(f"check monthly summary {month}", write=False):
            with self.session_factory() as session:
                count = session.exec(
                    select(func.count()).select_from(MonthlySummary).where(MonthlySummary.month == month)
                ).one()
                return count > 0

    def delete(self, month: str) -> None:
        """Delete a month; the foreign key cascade removes its weekly rows."""
        with storage_errors(f"delete monthly summary {month}", write=True):
            with self.session_factory() as session:
                row = self._select_month(session, month)
                if row is None:
                    return
                session.delete(row)
                session.commit()
        logger.info("Deleted monthly summary for month: %s", month)

    def update_salary(self, month: str) -> Optional[MonthlySummary]:
        with storage_errors(f"update salary {month}", write=True):
            with self.session_factory() as session:
                row = self._select_month(session, month)
                if row is None:
                    return None
                self.calculator.apply(row)
                session.commit()
                session.refresh(row)
                session.expunge(row)
                return row

    def update_rates(self, month: str, rates: HourlyRates) -> Optional[MonthlySummary]:
        with storage_errors(f"update rates {month}", write=True):
            with self.session_factory() as session:
                row = self._select_month(session, month)
                if row is None:
                    return None
                row.weekday_rate = rates.weekday
                row.weekend_rate = rates.weekend
                self.calculator.apply(row)
                session.commit()
                session.refresh(row)
                session.expunge(row)
        logger.info("Updated rates for month: %s", month)
        return row

    def recalculate_all_salaries(self) -> int:
        """Recompute every month's salary from its own stored rates.

        Runs in one transaction; returns the number of rows touched.
        """
        with storage_errors("recalculate all salaries", write=True):
            with self.session_factory() as session:
                rows = list(session.exec(select(MonthlySummary)).all())
                for row in rows:
                    self.calculator.apply(row)
                session.commit()
        logger.info("Recalculated salaries for all monthly summaries", extra={"count": len(rows)})
        return len(rows)
