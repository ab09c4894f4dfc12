"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import (
    SettingsRatePreferences,
    SQLModelMonthlySummaryRepository,
    SQLModelSettingsRepository,
    SQLModelWeeklySummaryRepository,
)
from .logging_config import get_logger
from .models.rates import HourlyRates
from .models.time_entry import WeekendPolicy
from .services.aggregation import TimeAggregator
from .services.csv_ingest import CSVIngestor
from .services.dates import DateParser
from .services.import_workflow import ImportWorkflow
from .services.reports import ReportService
from .services.salary import SalaryCalculator
from .services.settings import SettingsService

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    # Configuration
    config: BaseConfig

    # Database
    engine: Engine
    session_factory: Callable[[], Session]

    # Repositories
    monthly_repo: SQLModelMonthlySummaryRepository
    weekly_repo: SQLModelWeeklySummaryRepository
    settings_repo: SQLModelSettingsRepository
    preferences: SettingsRatePreferences

    # Services
    date_parser: DateParser
    ingestor: CSVIngestor
    aggregator: TimeAggregator
    calculator: SalaryCalculator
    workflow: ImportWorkflow
    reports: ReportService
    settings: SettingsService

    def close(self) -> None:
        """Release pooled database connections."""

        self.engine.dispose()
        logger.debug("Database engine disposed")


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    calculator = SalaryCalculator()
    monthly_repo = SQLModelMonthlySummaryRepository(session_factory, calculator)
    weekly_repo = SQLModelWeeklySummaryRepository(session_factory)
    settings_repo = SQLModelSettingsRepository(session_factory)
    preferences = SettingsRatePreferences(
        settings_repo,
        HourlyRates(weekday=config.DEFAULT_WEEKDAY_RATE, weekend=config.DEFAULT_WEEKEND_RATE),
    )

    date_parser = DateParser(fallback_tz=config.fallback_tzinfo())
    ingestor = CSVIngestor(date_parser)
    aggregator = TimeAggregator(
        tz=config.report_tzinfo(),
        policy=WeekendPolicy(config.WEEKEND_POLICY),
        week_start=config.week_start_weekday,
    )
    workflow = ImportWorkflow(
        ingestor=ingestor,
        aggregator=aggregator,
        calculator=calculator,
        monthly_repo=monthly_repo,
        weekly_repo=weekly_repo,
        preferences=preferences,
    )

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        monthly_repo=monthly_repo,
        weekly_repo=weekly_repo,
        settings_repo=settings_repo,
        preferences=preferences,
        date_parser=date_parser,
        ingestor=ingestor,
        aggregator=aggregator,
        calculator=calculator,
        workflow=workflow,
        reports=ReportService(monthly_repo, weekly_repo),
        settings=SettingsService(preferences, monthly_repo),
    )
