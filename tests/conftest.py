"""Pytest configuration and shared fixtures for ClockedOut tests.

This module provides database fixtures, repository wiring and CSV helpers for
testing parsing, aggregation, persistence and the import workflow without
touching the real app database.
"""

from __future__ import annotations

import logging
from datetime import date, timezone

import pytest

from clockedout.config import BaseConfig
from clockedout.infra.database import bootstrap_database
from clockedout.infra.repositories import (
    SettingsRatePreferences,
    SQLModelMonthlySummaryRepository,
    SQLModelSettingsRepository,
    SQLModelWeeklySummaryRepository,
)
from clockedout.logging_config import ROOT_LOGGER_NAME
from clockedout.models import HourlyRates
from clockedout.services.aggregation import TimeAggregator
from clockedout.services.csv_ingest import CSVIngestor
from clockedout.services.dates import DateParser
from clockedout.services.import_workflow import ImportWorkflow
from clockedout.services.salary import SalaryCalculator

DECEMBER_CSV = (
    "Start Text,Time Tracked\n"
    '"12/01/2025, 9:00:00 AM UTC",3600000\n'
    '"12/05/2025, 10:00:00 AM UTC",7200000\n'
    '"12/07/2025, 9:00:00 AM UTC",5400000\n'
)
"""Mon Dec 1 (weekday 1h), Fri Dec 5 (weekend 2h), Sun Dec 7 (weekday 1.5h)."""


def make_csv(*rows: tuple[str, int], header: str = "Start Text,Time Tracked") -> bytes:
    """Build CSV bytes from ``(start_text, duration_ms)`` pairs."""

    lines = [header]
    lines.extend(f'"{start}",{duration}' for start, duration in rows)
    return ("\n".join(lines) + "\n").encode("utf-8")


class InMemoryPreferences:
    """Rate preference store held in memory; records every save."""

    def __init__(self, weekday: float = 90.0, weekend: float = 100.0):
        self.rates = HourlyRates(weekday=weekday, weekend=weekend)
        self.saved: list[HourlyRates] = []

    def load_rates(self) -> HourlyRates:
        return self.rates

    def save_rates(self, rates: HourlyRates) -> None:
        self.rates = rates
        self.saved.append(rates)


# =============================================================================
# Environment / Logging Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_clockedout_logger():
    """Detach handlers installed by setup_logging so tests stay isolated."""

    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clockedout_env(tmp_path, monkeypatch):
    """Point every CLOCKEDOUT_* setting at a throwaway data directory."""

    for name in (
        "CLOCKEDOUT_DATABASE_URL",
        "CLOCKEDOUT_DEFAULT_WEEKDAY_RATE",
        "CLOCKEDOUT_DEFAULT_WEEKEND_RATE",
        "CLOCKEDOUT_WEEKEND_POLICY",
        "CLOCKEDOUT_WEEK_START",
        "CLOCKEDOUT_FALLBACK_UTC_OFFSET_MINUTES",
    ):
        monkeypatch.delenv(name, raising=False)
    data_dir = tmp_path / "data"
    monkeypatch.setenv("CLOCKEDOUT_DATA_DIR", str(data_dir))
    monkeypatch.setenv("CLOCKEDOUT_DEV_MODE", "0")
    monkeypatch.setenv("CLOCKEDOUT_REPORT_TIMEZONE", "UTC")
    return data_dir


@pytest.fixture
def config(clockedout_env) -> BaseConfig:
    return BaseConfig()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db(config):
    """Create an isolated file-backed SQLite database for each test.

    Yields:
        tuple: (engine, session_factory) with migrations applied
    """
    engine, session_factory = bootstrap_database(config)
    yield engine, session_factory
    engine.dispose()


@pytest.fixture
def db_engine(db):
    return db[0]


@pytest.fixture
def session_factory(db):
    return db[1]


@pytest.fixture
def calculator() -> SalaryCalculator:
    return SalaryCalculator()


@pytest.fixture
def monthly_repo(session_factory, calculator):
    return SQLModelMonthlySummaryRepository(session_factory, calculator)


@pytest.fixture
def weekly_repo(session_factory):
    return SQLModelWeeklySummaryRepository(session_factory)


@pytest.fixture
def settings_repo(session_factory):
    return SQLModelSettingsRepository(session_factory)


@pytest.fixture
def rate_preferences(settings_repo):
    return SettingsRatePreferences(settings_repo, HourlyRates(weekday=90.0, weekend=100.0))


@pytest.fixture
def preferences() -> InMemoryPreferences:
    return InMemoryPreferences()


@pytest.fixture
def december_csv() -> str:
    return DECEMBER_CSV


@pytest.fixture
def csv_bytes():
    return make_csv


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def ingestor() -> CSVIngestor:
    return CSVIngestor(DateParser())


@pytest.fixture
def aggregator() -> TimeAggregator:
    """UTC aggregator with Sunday weeks and a pinned 'today'."""

    return TimeAggregator(tz=timezone.utc, today=lambda: date(2025, 12, 10))


@pytest.fixture
def workflow(ingestor, aggregator, calculator, monthly_repo, weekly_repo, preferences) -> ImportWorkflow:
    return ImportWorkflow(
        ingestor=ingestor,
        aggregator=aggregator,
        calculator=calculator,
        monthly_repo=monthly_repo,
        weekly_repo=weekly_repo,
        preferences=preferences,
    )
