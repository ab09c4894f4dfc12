"""Monthly summary repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.monthly_summary import MonthlySummary
from ...models.rates import HourlyRates


class MonthlySummaryRepository(Protocol):
    """Repository for month-keyed summaries."""

    def save(self, summary: MonthlySummary) -> MonthlySummary:
        """Insert or update by month key; recomputes salary and bumps updated_at."""
        ...

    def fetch(self, month: str) -> Optional[MonthlySummary]:
        """Return the summary for a "MM/YYYY" key, if stored."""
        ...

    def fetch_all(self) -> list[MonthlySummary]:
        """Return every summary ordered by month key descending."""
        ...

    def exists(self, month: str) -> bool:
        ...

    def delete(self, month: str) -> None:
        """Delete a month; its weekly summaries go with it."""
        ...

    def recalculate_all_salaries(self) -> int:
        """Recompute salary for every row from its own stored rates."""
        ...

    def update_salary(self, month: str) -> Optional[MonthlySummary]:
        ...

    def update_rates(self, month: str, rates: HourlyRates) -> Optional[MonthlySummary]:
        ...
