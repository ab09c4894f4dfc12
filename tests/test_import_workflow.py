"""Import workflow: preview, commit actions, failure recovery, single-flight."""

from __future__ import annotations

import asyncio

import pytest

from clockedout.errors import (
    EmptyFile,
    InvalidDate,
    MissingColumns,
    OutOfRange,
    TransactionFailed,
    WeeklySummaryWriteFailed,
    WorkflowStateError,
    ZeroValue,
)
from clockedout.models import HourlyRates, WeeklySummary
from clockedout.services.import_workflow import (
    ImportAction,
    ImportState,
    ImportWorkflow,
    RateSource,
    merge_weekly_rows,
)


class FlakyWeeklyRepository:
    """Weekly repository whose first ``failures`` writes raise."""

    def __init__(self, inner, failures: int = 1):
        self.inner = inner
        self.failures = failures

    def save_all(self, summaries, month_id):
        if self.failures:
            self.failures -= 1
            raise TransactionFailed("replace weekly summaries", "disk I/O error")
        return self.inner.save_all(summaries, month_id)

    def __getattr__(self, name):
        return getattr(self.inner, name)


def run(coro):
    return asyncio.run(coro)


def _second_december_file(csv_bytes) -> bytes:
    return csv_bytes(
        ("12/02/2025, 9:00:00 AM UTC", 3600000),  # Tue, week of Nov 30
        ("12/15/2025, 9:00:00 AM UTC", 1800000),  # Mon, week of Dec 14
    )


def test_load_builds_preview(workflow, december_csv, preferences):
    preferences.rates = HourlyRates(weekday=50.0, weekend=60.0)

    preview = run(workflow.load(december_csv.encode()))

    assert workflow.state is ImportState.PREVIEWING
    assert preview.month_key == "12/2025"
    assert (preview.weekday_hours, preview.weekend_hours, preview.total_hours) == (2.5, 2.0, 4.5)
    assert preview.entry_count == 3
    assert preview.existing_month is False
    assert preview.rates == HourlyRates(weekday=50.0, weekend=60.0)
    assert preview.salary == 245.0
    assert len(preview.weekly_reports) == 2
    assert len(workflow.entries) == 3


def test_load_from_path(workflow, december_csv, tmp_path):
    path = tmp_path / "december.csv"
    path.write_text(december_csv, encoding="utf-8")
    assert run(workflow.load(path)).entry_count == 3


def test_set_rates_recomputes_salary_without_reparsing(workflow, december_csv):
    run(workflow.load(december_csv.encode()))

    preview = workflow.set_rates(10, 20)

    assert preview.rates == HourlyRates(weekday=10.0, weekend=20.0)
    assert preview.salary == 65.0
    assert workflow.preview is preview


def test_invalid_rates_leave_preview_untouched(workflow, december_csv):
    before = run(workflow.load(december_csv.encode()))
    with pytest.raises(ZeroValue):
        workflow.set_rates(0, 20)
    assert workflow.preview is before
    assert workflow.state is ImportState.PREVIEWING


def test_parse_failures_move_to_error(workflow):
    with pytest.raises(MissingColumns):
        run(workflow.load(b"Start Text,Duration\n\"12/01/2025\",1\n"))
    assert workflow.state is ImportState.ERROR
    assert isinstance(workflow.last_error, MissingColumns)
    assert workflow.preview is None

    with pytest.raises(InvalidDate):
        run(workflow.load(b"Start Text,Time Tracked\nnever,1\n"))
    with pytest.raises(EmptyFile):
        run(workflow.load(b""))


def test_commit_new_month(workflow, december_csv, monthly_repo, weekly_repo, preferences):
    run(workflow.load(december_csv.encode()))

    summary = run(workflow.commit(ImportAction.REPLACE))

    assert workflow.state is ImportState.IDLE
    assert workflow.preview is None
    assert summary.month == "12/2025"
    assert summary.salary == 425.0
    stored = monthly_repo.fetch("12/2025")
    assert (stored.weekday_hours, stored.weekend_hours) == (2.5, 2.0)
    weeks = weekly_repo.fetch(stored.id)
    assert [(w.week_start_date, w.week_end_date) for w in weeks] == [
        ("2025-11-30", "2025-12-06"),
        ("2025-12-07", "2025-12-13"),
    ]
    assert sum(w.total_hours for w in weeks) == 4.5
    assert preferences.saved == [HourlyRates(weekday=90.0, weekend=100.0)]


def test_replace_overwrites_previous_month(workflow, december_csv, csv_bytes, monthly_repo, weekly_repo):
    run(workflow.load(december_csv.encode()))
    run(workflow.commit())

    preview = run(workflow.load(_second_december_file(csv_bytes)))
    assert preview.existing_month is True
    run(workflow.commit(ImportAction.REPLACE))

    stored = monthly_repo.fetch("12/2025")
    assert (stored.weekday_hours, stored.weekend_hours) == (1.5, 0.0)
    assert [w.week_start_date for w in weekly_repo.fetch(stored.id)] == ["2025-11-30", "2025-12-14"]


def test_accumulate_adds_hours_and_merges_weeks(workflow, december_csv, csv_bytes, monthly_repo, weekly_repo):
    run(workflow.load(december_csv.encode()))
    run(workflow.commit())

    run(workflow.load(_second_december_file(csv_bytes)))
    summary = run(workflow.commit(ImportAction.ACCUMULATE))

    assert (summary.weekday_hours, summary.weekend_hours) == (4.0, 2.0)
    assert summary.salary == 560.0
    weeks = weekly_repo.fetch(summary.id)
    assert [(w.week_start_date, w.weekday_hours, w.weekend_hours) for w in weeks] == [
        ("2025-11-30", 2.0, 2.0),
        ("2025-12-07", 1.5, 0.0),
        ("2025-12-14", 0.5, 0.0),
    ]
    assert sum(w.weekday_hours for w in weeks) == summary.weekday_hours


def test_accumulate_without_stored_month_behaves_like_replace(workflow, december_csv, monthly_repo):
    run(workflow.load(december_csv.encode()))
    summary = run(workflow.commit(ImportAction.ACCUMULATE))
    assert (summary.weekday_hours, summary.weekend_hours) == (2.5, 2.0)


def test_accumulate_rate_source(workflow, december_csv, csv_bytes, monthly_repo):
    run(workflow.load(december_csv.encode()))
    workflow.set_rates(50, 60)
    run(workflow.commit())

    run(workflow.load(_second_december_file(csv_bytes)))
    workflow.set_rates(70, 80)
    stored_rates = run(workflow.commit(ImportAction.ACCUMULATE, RateSource.STORED))
    assert (stored_rates.weekday_rate, stored_rates.weekend_rate) == (50.0, 60.0)

    run(workflow.load(_second_december_file(csv_bytes)))
    workflow.set_rates(70, 80)
    caller_rates = run(workflow.commit(ImportAction.ACCUMULATE, RateSource.CALLER))
    assert (caller_rates.weekday_rate, caller_rates.weekend_rate) == (70.0, 80.0)
    assert caller_rates.salary == round(5.5 * 70 + 2.0 * 80, 2)


def test_invalid_rates_block_commit(workflow, december_csv, monthly_repo, preferences):
    preferences.rates = HourlyRates(weekday=0.0, weekend=100.0)
    run(workflow.load(december_csv.encode()))

    with pytest.raises(ZeroValue):
        run(workflow.commit())

    assert monthly_repo.exists("12/2025") is False
    assert workflow.state is ImportState.ERROR
    assert workflow.preview is not None

    workflow.set_rates(90, 100)
    assert run(workflow.commit()).salary == 425.0


def test_cancel_discards_without_persisting(workflow, december_csv, monthly_repo):
    run(workflow.load(december_csv.encode()))
    workflow.cancel()

    assert workflow.state is ImportState.IDLE
    assert workflow.preview is None
    assert monthly_repo.exists("12/2025") is False
    with pytest.raises(WorkflowStateError):
        run(workflow.commit())


def test_set_rates_without_load(workflow):
    with pytest.raises(WorkflowStateError):
        workflow.set_rates(1, 1)


def test_weekly_failure_keeps_pending_rows_for_retry(
    ingestor, aggregator, calculator, monthly_repo, weekly_repo, preferences, december_csv
):
    flaky = FlakyWeeklyRepository(weekly_repo)
    workflow = ImportWorkflow(
        ingestor=ingestor,
        aggregator=aggregator,
        calculator=calculator,
        monthly_repo=monthly_repo,
        weekly_repo=flaky,
        preferences=preferences,
    )
    run(workflow.load(december_csv.encode()))

    with pytest.raises(WeeklySummaryWriteFailed) as excinfo:
        run(workflow.commit())

    stored = monthly_repo.fetch("12/2025")
    assert excinfo.value.month_key == "12/2025"
    assert excinfo.value.month_id == stored.id
    assert isinstance(excinfo.value, TransactionFailed)
    assert weekly_repo.fetch(stored.id) == []
    assert workflow.state is ImportState.ERROR
    assert workflow.has_pending_weekly
    assert preferences.saved == []

    with pytest.raises(WorkflowStateError):
        run(workflow.commit())

    summary = run(workflow.retry_weekly())

    assert summary.id == stored.id
    assert len(weekly_repo.fetch(stored.id)) == 2
    assert workflow.state is ImportState.IDLE
    assert not workflow.has_pending_weekly
    assert len(preferences.saved) == 1


def test_retry_without_failure(workflow):
    with pytest.raises(WorkflowStateError):
        run(workflow.retry_weekly())


def test_commit_is_single_flight(workflow, december_csv, monthly_repo):
    async def scenario():
        await workflow.load(december_csv.encode())
        first = asyncio.create_task(workflow.commit())
        await asyncio.sleep(0)
        assert workflow.state is ImportState.COMMITTING
        with pytest.raises(WorkflowStateError):
            await workflow.commit()
        with pytest.raises(WorkflowStateError):
            await workflow.load(december_csv.encode())
        with pytest.raises(WorkflowStateError):
            workflow.cancel()
        return await first

    summary = run(scenario())

    assert summary.month == "12/2025"
    assert workflow.state is ImportState.IDLE
    assert len(monthly_repo.fetch_all()) == 1


def test_merge_weekly_rows_sums_per_week():
    stored = [WeeklySummary(month_id=1, week_start_date="2025-11-30", week_end_date="2025-12-06", weekday_hours=1.25)]
    incoming = [
        WeeklySummary(month_id=1, week_start_date="2025-12-07", week_end_date="2025-12-13", weekend_hours=2.0),
        WeeklySummary(month_id=1, week_start_date="2025-11-30", week_end_date="2025-12-06", weekday_hours=0.75),
    ]
    merged = merge_weekly_rows(stored, incoming, 7)
    assert [(row.week_start_date, row.weekday_hours, row.weekend_hours, row.month_id) for row in merged] == [
        ("2025-11-30", 2.0, 0.0, 7),
        ("2025-12-07", 0.0, 2.0, 7),
    ]


async def _wait_until_settled(workflow, attempts: int = 500) -> None:
    for _ in range(attempts):
        if workflow.state is not ImportState.COMMITTING:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("commit never settled")


def test_cancelled_commit_still_finishes(workflow, december_csv, monthly_repo, weekly_repo, preferences):
    async def scenario():
        await workflow.load(december_csv.encode())
        task = asyncio.create_task(workflow.commit())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await _wait_until_settled(workflow)

    run(scenario())

    assert workflow.state is ImportState.IDLE
    stored = monthly_repo.fetch("12/2025")
    assert stored is not None
    assert len(weekly_repo.fetch(stored.id)) == 2
    assert len(preferences.saved) == 1

    workflow.cancel()
    assert workflow.state is ImportState.IDLE


def test_unexpected_commit_error_leaves_workflow_usable(
    ingestor, aggregator, calculator, monthly_repo, weekly_repo, preferences, december_csv
):
    class BrokenWeeklyRepository(FlakyWeeklyRepository):
        def save_all(self, summaries, month_id):
            raise OSError("disk vanished")

    workflow = ImportWorkflow(
        ingestor=ingestor,
        aggregator=aggregator,
        calculator=calculator,
        monthly_repo=monthly_repo,
        weekly_repo=BrokenWeeklyRepository(weekly_repo),
        preferences=preferences,
    )
    run(workflow.load(december_csv.encode()))

    with pytest.raises(OSError):
        run(workflow.commit())

    assert workflow.state is ImportState.ERROR
    workflow.cancel()
    assert workflow.state is ImportState.IDLE


def test_hours_beyond_monthly_limit_are_rejected(workflow, csv_bytes, monthly_repo):
    run(workflow.load(csv_bytes(("12/01/2025, 9:00:00 AM UTC", 600 * 3600000))))
    run(workflow.commit())

    run(workflow.load(csv_bytes(("12/02/2025, 9:00:00 AM UTC", 500 * 3600000))))
    with pytest.raises(OutOfRange):
        run(workflow.commit(ImportAction.ACCUMULATE))

    assert monthly_repo.fetch("12/2025").weekday_hours == 600.0
    assert workflow.state is ImportState.ERROR
