"""Day classification, week bucketing, and monthly rollups."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta, timezone

import pytest

from clockedout.models import DayType, TimeEntry, WeekendPolicy, classify_day
from clockedout.numbers import MS_PER_HOUR, ms_to_hours, round_to
from clockedout.services.aggregation import TimeAggregator, month_key_for

IST = timezone(timedelta(hours=5, minutes=30))


def entry(y, m, d, hour=9, ms=MS_PER_HOUR) -> TimeEntry:
    return TimeEntry(start=datetime(y, m, d, hour, tzinfo=timezone.utc), duration_ms=ms)


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2025, 11, 30), DayType.WEEKDAY),  # Sunday
        (date(2025, 12, 1), DayType.WEEKDAY),  # Monday
        (date(2025, 12, 4), DayType.WEEKDAY),  # Thursday
        (date(2025, 12, 5), DayType.WEEKEND),  # Friday
        (date(2025, 12, 6), DayType.WEEKEND),  # Saturday
    ],
)
def test_default_policy_is_friday_saturday_weekend(day, expected):
    moment = datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc)
    assert classify_day(moment, tz=timezone.utc) is expected


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2025, 11, 30), DayType.WEEKEND),
        (date(2025, 12, 5), DayType.WEEKDAY),
        (date(2025, 12, 6), DayType.WEEKEND),
    ],
)
def test_saturday_sunday_policy(day, expected):
    moment = datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc)
    assert classify_day(moment, tz=timezone.utc, policy=WeekendPolicy.SATURDAY_SUNDAY) is expected


def test_classification_uses_reporting_timezone():
    # Thursday 20:00 UTC is already Friday in India.
    late_thursday = datetime(2025, 12, 4, 20, 0, tzinfo=timezone.utc)
    assert TimeAggregator(tz=timezone.utc).classify(late_thursday) is DayType.WEEKDAY
    assert TimeAggregator(tz=IST).classify(late_thursday) is DayType.WEEKEND


def test_week_bounds_sunday_and_monday_start():
    sunday_weeks = TimeAggregator()
    assert sunday_weeks.week_bounds(date(2025, 12, 3)) == (date(2025, 11, 30), date(2025, 12, 6))
    assert sunday_weeks.week_bounds(date(2025, 11, 30)) == (date(2025, 11, 30), date(2025, 12, 6))

    monday_weeks = TimeAggregator(week_start=0)
    assert monday_weeks.week_bounds(date(2025, 12, 3)) == (date(2025, 12, 1), date(2025, 12, 7))


def test_invalid_week_start():
    with pytest.raises(ValueError):
        TimeAggregator(week_start=7)


def test_weekly_reports_are_grouped_and_sorted(aggregator):
    entries = [
        entry(2025, 12, 7, ms=int(1.5 * MS_PER_HOUR)),
        entry(2025, 12, 1),
        entry(2025, 12, 5, ms=2 * MS_PER_HOUR),
    ]

    reports = aggregator.weekly_reports(entries)

    assert [report.week_start for report in reports] == [date(2025, 11, 30), date(2025, 12, 7)]
    first, second = reports
    assert (first.weekday_hours, first.weekend_hours, first.total_hours) == (1.0, 2.0, 3.0)
    assert (second.weekday_hours, second.weekend_hours) == (1.5, 0.0)
    assert first.week_end == date(2025, 12, 6)
    assert first.week_range_label == "30-6/11"
    assert second.display_label == "December 7 - 13"


def test_empty_input_yields_single_zero_report_for_current_week(aggregator):
    reports = aggregator.weekly_reports([])
    assert len(reports) == 1
    assert reports[0].week_start == date(2025, 12, 7)
    assert reports[0].total_hours == 0.0

    result = aggregator.aggregate([])
    assert result.month_key == "12/2025"
    assert result.entry_count == 0


def test_weekly_sums_match_direct_monthly_totals(aggregator):
    # Durations in whole hundredths of an hour so rounding cannot diverge.
    step = MS_PER_HOUR // 100
    entries = [entry(2025, 12, day, ms=step * (17 * day + 3)) for day in range(1, 29)]

    reports = aggregator.weekly_reports(entries)
    weekday, weekend = aggregator.monthly_totals(reports)
    direct_weekday, direct_weekend = aggregator.split_hours(entries)

    assert weekday == round_to(direct_weekday)
    assert weekend == round_to(direct_weekend)
    assert round_to(sum(r.weekday_hours for r in reports)) == weekday


def test_aggregate_month_key_and_totals(aggregator):
    result = aggregator.aggregate([entry(2025, 12, 1), entry(2025, 12, 5, ms=2 * MS_PER_HOUR)])
    assert result.month_key == "12/2025"
    assert (result.weekday_hours, result.weekend_hours, result.total_hours) == (1.0, 2.0, 3.0)
    assert result.entry_count == 2


def test_month_key_comes_from_first_entry_and_warns_when_spanning(aggregator, caplog):
    entries = [entry(2025, 11, 29), entry(2025, 12, 2)]
    with caplog.at_level(logging.WARNING, logger="clockedout"):
        result = aggregator.aggregate(entries)
    assert result.month_key == "11/2025"
    assert result.weekday_hours == 1.0
    assert result.weekend_hours == 1.0
    assert any("span 2 months" in record.getMessage() for record in caplog.records)


def test_month_key_for():
    assert month_key_for(date(2026, 3, 9)) == "03/2026"


@pytest.mark.parametrize("duration_ms", [0, 1, 1800000, 3600000, 5400000, 123456789])
def test_ms_to_hours(duration_ms):
    assert round_to(ms_to_hours(duration_ms)) == round_to(duration_ms / 3_600_000)


def test_round_half_up():
    assert round_to(2.675) == 2.68
    assert round_to(1.005) == 1.01
    assert round_to(0.125) == 0.13
    assert round_to(2.5, 0) == 3.0


@pytest.fixture
def new_york_host(monkeypatch):
    """Run with the host clock set to US Eastern time, DST included."""

    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_host_zone_follows_daylight_saving(new_york_host):
    aggregator = TimeAggregator(tz=None)
    winter_thursday_night = datetime(2026, 1, 9, 4, 30, tzinfo=timezone.utc)  # Thu 23:30 EST
    summer_friday_morning = datetime(2026, 7, 3, 4, 30, tzinfo=timezone.utc)  # Fri 00:30 EDT

    assert aggregator.local_date(winter_thursday_night) == date(2026, 1, 8)
    assert aggregator.classify(winter_thursday_night) is DayType.WEEKDAY
    assert aggregator.local_date(summer_friday_morning) == date(2026, 7, 3)
    assert aggregator.classify(summer_friday_morning) is DayType.WEEKEND
    assert aggregator.aggregate(
        [TimeEntry(start=datetime(2026, 2, 1, 4, 30, tzinfo=timezone.utc), duration_ms=MS_PER_HOUR)]
    ).month_key == "01/2026"
