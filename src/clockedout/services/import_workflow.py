"""Import workflow: parse, preview, then commit a month of tracked time.

The workflow is a small state machine driven by a front end::

    IDLE -> PARSING -> PREVIEWING -> COMMITTING -> IDLE
                 \\-> ERROR          \\-> ERROR

Parsing and aggregation run inline; persistence runs in a worker thread via
``asyncio.to_thread`` so an event loop driving the UI stays responsive.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Awaitable, Optional, Sequence, Union

from ..domain.repositories import MonthlySummaryRepository, RatePreferences, WeeklySummaryRepository
from ..errors import (
    ClockedOutError,
    EmptyFile,
    RecordNotFound,
    StorageError,
    WeeklySummaryWriteFailed,
    WorkflowStateError,
)
from ..logging_config import get_logger
from ..models.monthly_summary import MonthlySummary
from ..models.rates import HourlyRates
from ..models.report import WeeklyReport
from ..models.time_entry import TimeEntry
from ..models.weekly_summary import WeeklySummary
from ..numbers import round_to
from .aggregation import TimeAggregator
from .csv_ingest import CSVIngestor
from .salary import SalaryCalculator, salary_formula, validate_hours, validate_rate, validate_rates

logger = get_logger(__name__)

ImportSource = Union[Path, str, bytes]


class ImportState(str, enum.Enum):
    IDLE = "idle"
    PARSING = "parsing"
    PREVIEWING = "previewing"
    COMMITTING = "committing"
    ERROR = "error"


class ImportAction(str, enum.Enum):
    """How new hours combine with a month that is already stored."""

    REPLACE = "replace"
    ACCUMULATE = "accumulate"


class RateSource(str, enum.Enum):
    """Which rates an accumulate commit stores."""

    CALLER = "caller"
    STORED = "stored"


@dataclass(slots=True)
class ImportPreview:
    """What a commit would write, shown to the user before confirming."""

    month_key: str
    weekday_hours: float
    weekend_hours: float
    entry_count: int
    salary: float
    existing_month: bool
    rates: HourlyRates
    weekly_reports: list[WeeklyReport] = field(default_factory=list)
    skipped_rows: int = 0

    @property
    def total_hours(self) -> float:
        return round_to(self.weekday_hours + self.weekend_hours)


@dataclass(slots=True)
class _PendingWeekly:
    summary: MonthlySummary
    rows: list[WeeklySummary]
    rates: HourlyRates

    @property
    def month_key(self) -> str:
        return self.summary.month

    @property
    def month_id(self) -> int:
        assert self.summary.id is not None
        return self.summary.id


def weekly_rows(reports: Sequence[WeeklyReport], month_id: int) -> list[WeeklySummary]:
    return [
        WeeklySummary(
            month_id=month_id,
            week_start_date=report.week_start.isoformat(),
            week_end_date=report.week_end.isoformat(),
            weekday_hours=report.weekday_hours,
            weekend_hours=report.weekend_hours,
        )
        for report in reports
    ]


def merge_weekly_rows(
    stored: Sequence[WeeklySummary], incoming: Sequence[WeeklySummary], month_id: int
) -> list[WeeklySummary]:
    """Sum hours per week start so weekly rows keep adding up to the month."""

    merged: dict[str, WeeklySummary] = {}
    for row in list(stored) + list(incoming):
        current = merged.get(row.week_start_date)
        if current is None:
            merged[row.week_start_date] = WeeklySummary(
                month_id=month_id,
                week_start_date=row.week_start_date,
                week_end_date=row.week_end_date,
                weekday_hours=row.weekday_hours,
                weekend_hours=row.weekend_hours,
            )
            continue
        current.weekday_hours = round_to(current.weekday_hours + row.weekday_hours)
        current.weekend_hours = round_to(current.weekend_hours + row.weekend_hours)
    return [merged[key] for key in sorted(merged)]


def _log_detached_outcome(task: asyncio.Future[MonthlySummary]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Detached commit failed: %s", exc)


class ImportWorkflow:
    """Coordinate one import at a time for a single front-end session."""

    def __init__(
        self,
        *,
        ingestor: CSVIngestor,
        aggregator: TimeAggregator,
        calculator: SalaryCalculator,
        monthly_repo: MonthlySummaryRepository,
        weekly_repo: WeeklySummaryRepository,
        preferences: RatePreferences,
    ):
        self.ingestor = ingestor
        self.aggregator = aggregator
        self.calculator = calculator
        self.monthly_repo = monthly_repo
        self.weekly_repo = weekly_repo
        self.preferences = preferences

        self._state = ImportState.IDLE
        self._preview: Optional[ImportPreview] = None
        self._entries: list[TimeEntry] = []
        self._pending_weekly: Optional[_PendingWeekly] = None
        self._last_error: Optional[ClockedOutError] = None
        self._commit_lock = asyncio.Lock()

    @property
    def state(self) -> ImportState:
        return self._state

    @property
    def preview(self) -> Optional[ImportPreview]:
        return self._preview

    @property
    def entries(self) -> list[TimeEntry]:
        return list(self._entries)

    @property
    def last_error(self) -> Optional[ClockedOutError]:
        return self._last_error

    @property
    def has_pending_weekly(self) -> bool:
        return self._pending_weekly is not None

    def _transition(self, state: ImportState) -> None:
        if state is not self._state:
            logger.debug("Import workflow %s -> %s", self._state.value, state.value)
        self._state = state

    def _fail(self, exc: ClockedOutError) -> None:
        self._last_error = exc
        self._transition(ImportState.ERROR)

    def _ensure_not_committing(self, operation: str) -> None:
        if self._state is ImportState.COMMITTING or self._commit_lock.locked():
            raise WorkflowStateError(f"Cannot {operation} while a commit is in progress")

    def _clear(self) -> None:
        self._preview = None
        self._entries = []
        self._pending_weekly = None
        self._last_error = None

    async def load(self, source: ImportSource) -> ImportPreview:
        """Parse ``source`` (a path or raw bytes) and build a preview."""

        self._ensure_not_committing("load a file")
        self._clear()
        self._transition(ImportState.PARSING)
        try:
            if isinstance(source, bytes):
                entries = self.ingestor.parse_bytes(source)
            else:
                entries = self.ingestor.parse_file(Path(source))
            if not entries:
                raise EmptyFile()

            result = self.aggregator.aggregate(entries)
            existing = await asyncio.to_thread(self.monthly_repo.exists, result.month_key)
            rates = await asyncio.to_thread(self.preferences.load_rates)
        except ClockedOutError as exc:
            logger.warning("Import failed while parsing: %s", exc)
            self._fail(exc)
            raise

        self._entries = list(entries)
        self._preview = ImportPreview(
            month_key=result.month_key,
            weekday_hours=result.weekday_hours,
            weekend_hours=result.weekend_hours,
            entry_count=result.entry_count,
            salary=salary_formula(result.weekday_hours, result.weekend_hours, rates.weekday, rates.weekend),
            existing_month=existing,
            rates=rates,
            weekly_reports=list(result.weekly_reports),
            skipped_rows=len(self.ingestor.last_errors),
        )
        self._transition(ImportState.PREVIEWING)
        logger.info(
            "Import preview ready for %s",
            result.month_key,
            extra={"entries": result.entry_count, "existing_month": existing},
        )
        return self._preview

    def set_rates(self, weekday: float, weekend: float) -> ImportPreview:
        """Recompute the preview salary for new rates without re-parsing."""

        self._ensure_not_committing("change rates")
        preview = self._require_preview()
        rates = HourlyRates(
            weekday=validate_rate(weekday, "Weekday Rate"),
            weekend=validate_rate(weekend, "Weekend Rate"),
        )
        self._preview = replace(
            preview,
            rates=rates,
            salary=self.calculator.calculate(preview.weekday_hours, preview.weekend_hours, rates),
        )
        return self._preview

    def cancel(self) -> None:
        """Drop the cached import; nothing is written."""

        self._ensure_not_committing("cancel")
        self._clear()
        self._transition(ImportState.IDLE)
        logger.info("Import cancelled")

    def _require_preview(self) -> ImportPreview:
        if self._preview is None:
            raise WorkflowStateError("No file has been loaded")
        return self._preview

    async def commit(
        self, action: ImportAction = ImportAction.REPLACE, rate_source: RateSource = RateSource.CALLER
    ) -> MonthlySummary:
        """Persist the previewed month, then its weekly breakdown.

        Once admitted, the write runs to completion even if the awaiting
        caller is cancelled; the workflow then settles in IDLE or ERROR.
        """

        self._ensure_not_committing("commit")
        if self._pending_weekly is not None:
            raise WorkflowStateError("Weekly summaries are still pending; retry them or cancel the import")
        preview = self._require_preview()

        self._transition(ImportState.COMMITTING)
        return await self._run_detached(self._persist(preview, action, rate_source), preview.month_key)

    async def retry_weekly(self) -> MonthlySummary:
        """Re-run only the weekly write after ``WeeklySummaryWriteFailed``."""

        self._ensure_not_committing("retry")
        pending = self._pending_weekly
        if pending is None:
            raise WorkflowStateError("There is no failed weekly write to retry")

        self._transition(ImportState.COMMITTING)
        return await self._run_detached(self._persist_weekly(pending), pending.month_key)

    async def _run_detached(self, persistence: Awaitable[MonthlySummary], month_key: str) -> MonthlySummary:
        task = asyncio.ensure_future(persistence)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            logger.warning("Commit for %s was cancelled by the caller; finishing the write", month_key)
            task.add_done_callback(_log_detached_outcome)
            raise

    async def _persist(
        self, preview: ImportPreview, action: ImportAction, rate_source: RateSource
    ) -> MonthlySummary:
        async with self._commit_lock:
            try:
                pending = await asyncio.to_thread(self._save_month, preview, action, rate_source)
                self._pending_weekly = pending
                await asyncio.to_thread(self._save_weekly, pending)
                await self._finish(pending.rates)
            except ClockedOutError as exc:
                logger.error("Import commit failed for %s: %s", preview.month_key, exc)
                self._fail(exc)
                raise
            except BaseException:
                logger.exception("Import commit aborted for %s", preview.month_key)
                self._transition(ImportState.ERROR)
                raise
        return pending.summary

    async def _persist_weekly(self, pending: _PendingWeekly) -> MonthlySummary:
        async with self._commit_lock:
            try:
                await asyncio.to_thread(self._save_weekly, pending)
                await self._finish(pending.rates)
            except ClockedOutError as exc:
                self._fail(exc)
                raise
            except BaseException:
                logger.exception("Weekly summary retry aborted for %s", pending.month_key)
                self._transition(ImportState.ERROR)
                raise
        return pending.summary

    async def _finish(self, rates: HourlyRates) -> None:
        try:
            await asyncio.to_thread(self.preferences.save_rates, rates)
        except StorageError as exc:
            logger.warning("Import saved but default rates were not updated: %s", exc)
        self._clear()
        self._transition(ImportState.IDLE)

    def _save_month(
        self, preview: ImportPreview, action: ImportAction, rate_source: RateSource
    ) -> _PendingWeekly:
        existing = self.monthly_repo.fetch(preview.month_key)
        weekday_hours = preview.weekday_hours
        weekend_hours = preview.weekend_hours
        rates = preview.rates
        stored_weeks: list[WeeklySummary] = []

        if action is ImportAction.ACCUMULATE and existing is not None:
            weekday_hours = round_to(existing.weekday_hours + weekday_hours)
            weekend_hours = round_to(existing.weekend_hours + weekend_hours)
            if rate_source is RateSource.STORED:
                rates = existing.rates
            if existing.id is not None:
                stored_weeks = self.weekly_repo.fetch(existing.id)

        weekday_hours = validate_hours(weekday_hours, "Weekday Hours")
        weekend_hours = validate_hours(weekend_hours, "Weekend Hours")
        rates = validate_rates(rates)
        self.monthly_repo.save(
            MonthlySummary(
                month=preview.month_key,
                weekday_hours=weekday_hours,
                weekend_hours=weekend_hours,
                weekday_rate=rates.weekday,
                weekend_rate=rates.weekend,
            )
        )
        saved = self.monthly_repo.fetch(preview.month_key)
        if saved is None or saved.id is None:
            raise RecordNotFound(preview.month_key)

        incoming = weekly_rows(preview.weekly_reports, saved.id)
        rows = merge_weekly_rows(stored_weeks, incoming, saved.id) if stored_weeks else incoming
        logger.info(
            "Saved month %s (%s)",
            saved.month,
            action.value,
            extra={"month_id": saved.id, "salary": saved.salary, "rate_source": rate_source.value},
        )
        return _PendingWeekly(summary=saved, rows=rows, rates=rates)

    def _save_weekly(self, pending: _PendingWeekly) -> None:
        try:
            self.weekly_repo.save_all(pending.rows, pending.month_id)
        except StorageError as exc:
            raise WeeklySummaryWriteFailed(pending.month_key, pending.month_id, str(exc)) from exc
