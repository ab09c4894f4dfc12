"""Weekly summary repository protocol."""

from __future__ import annotations

from typing import Protocol, Sequence

from ...models.weekly_summary import WeeklySummary


class WeeklySummaryRepository(Protocol):
    """Repository for the weekly breakdown of a month."""

    def save_all(self, summaries: Sequence[WeeklySummary], month_id: int) -> list[WeeklySummary]:
        """Atomically replace every weekly row of ``month_id`` with ``summaries``."""
        ...

    def fetch(self, month_id: int) -> list[WeeklySummary]:
        """Weekly rows of a month ordered by week start ascending."""
        ...

    def delete(self, month_id: int) -> None:
        ...

    def fetch_range(self, start: str, end: str) -> list[WeeklySummary]:
        """Weekly rows whose week overlaps the inclusive ISO date range."""
        ...
