"""Database infrastructure: engine construction and session scopes."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Tuple

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, create_engine

from ..config import BaseConfig
from ..errors import ConnectionFailed
from ..logging_config import get_logger
from .migrations import run_migrations

logger = get_logger(__name__)


def _install_sqlite_pragmas(engine: Engine, pragmas: Mapping[str, str]) -> None:
    """Apply PRAGMA statements on every new DBAPI connection."""

    if engine.dialect.name != "sqlite":
        return

    in_memory = engine.url.database in (None, "", ":memory:")

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        try:
            for name, value in pragmas.items():
                if name == "journal_mode" and in_memory:
                    continue
                cursor.execute(f"PRAGMA {name}={value}")
        finally:
            cursor.close()


def create_db_engine(config: BaseConfig) -> Engine:
    """Create SQLModel engine from configuration."""
    engine_options = config.sqlalchemy_engine_options()
    engine = create_engine(config.DATABASE_URL, **engine_options)
    _install_sqlite_pragmas(engine, config.SQLITE_PRAGMAS)
    return engine


def init_database(engine: Engine) -> None:
    """Verify connectivity and bring the schema up to date."""

    try:
        with engine.connect():
            pass
    except SQLAlchemyError as exc:
        raise ConnectionFailed(str(exc)) from exc
    run_migrations(engine)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Provide a transactional scope around operations."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine):
    """Create a session factory returning transactional session scopes."""

    def factory():
        return session_scope(engine)

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple[Engine, Any]:
    """Convenience bootstrap for engine + session_factory with schema init.

    Used by application startup and tests to ensure consistent engine options
    and session configuration. Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    logger.info("Initializing database", extra={"database_url": cfg.DATABASE_URL})
    init_database(engine)
    return engine, create_session_factory(engine)
