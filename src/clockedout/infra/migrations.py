"""Ordered, idempotent schema migrations applied at startup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from ..errors import MigrationFailed
from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Migration:
    version: str
    apply: Callable[[Connection], None]


def _initial_schema(connection: Connection) -> None:
    from ..models import AppSetting, MonthlySummary, WeeklySummary

    # checkfirst makes this CREATE TABLE IF NOT EXISTS, including the unique
    # (month_id, week_start_date) index declared on WeeklySummary.
    SQLModel.metadata.create_all(
        connection,
        tables=[MonthlySummary.__table__, WeeklySummary.__table__, AppSetting.__table__],
        checkfirst=True,
    )
    connection.execute(
        text(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_weekly_summaries_month_week "
            "ON weekly_summaries(month_id, week_start_date)"
        )
    )


def _add_indexes(connection: Connection) -> None:
    connection.execute(
        text("CREATE INDEX IF NOT EXISTS idx_monthly_summaries_month ON monthly_summaries(month)")
    )
    connection.execute(
        text("CREATE INDEX IF NOT EXISTS idx_weekly_summaries_month_id ON weekly_summaries(month_id)")
    )
    connection.execute(
        text(
            "CREATE INDEX IF NOT EXISTS idx_weekly_summaries_week_dates "
            "ON weekly_summaries(week_start_date, week_end_date)"
        )
    )


MIGRATIONS: tuple[Migration, ...] = (
    Migration("001_initial_schema", _initial_schema),
    Migration("002_add_indexes", _add_indexes),
)


def _ensure_version_table(connection: Connection) -> None:
    connection.execute(
        text(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            "version TEXT PRIMARY KEY NOT NULL, applied_at TEXT NOT NULL)"
        )
    )


def applied_versions(engine: Engine) -> list[str]:
    """Return the migration versions recorded as applied, in order."""

    with engine.begin() as connection:
        _ensure_version_table(connection)
        rows = connection.execute(text("SELECT version FROM schema_migrations ORDER BY version"))
        return [row[0] for row in rows]


def run_migrations(engine: Engine, migrations: tuple[Migration, ...] = MIGRATIONS) -> list[str]:
    """Apply pending migrations in order; returns the versions applied now.

    Each migration runs in its own transaction together with its bookkeeping
    row, so a failure leaves earlier migrations applied and later ones pending.
    """

    done = set(applied_versions(engine))
    newly_applied: list[str] = []
    for migration in migrations:
        if migration.version in done:
            continue
        try:
            with engine.begin() as connection:
                migration.apply(connection)
                connection.execute(
                    text("INSERT INTO schema_migrations (version, applied_at) VALUES (:v, :at)"),
                    {"v": migration.version, "at": datetime.now(timezone.utc).isoformat()},
                )
        except SQLAlchemyError as exc:
            logger.error("Database migration failed", extra={"version": migration.version})
            raise MigrationFailed(migration.version, str(exc)) from exc
        logger.info("Applied migration %s", migration.version)
        newly_applied.append(migration.version)
    return newly_applied
