"""Admin utilities: database backups."""

from __future__ import annotations

import os
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import make_url

from ..config import BaseConfig
from ..logging_config import get_logger

logger = get_logger(__name__)

BACKUP_RETENTION = 10


def _ensure_secure_directory(directory: Path) -> None:
    """Create the directory and set restrictive permissions when possible."""

    directory.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(directory, 0o700)
    except (NotImplementedError, PermissionError):  # pragma: no cover - platform specific
        pass


def database_path(config: BaseConfig) -> Path:
    """Filesystem path of the configured SQLite database."""

    url = make_url(config.DATABASE_URL)
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        raise ValueError(f"Backups need a file-backed SQLite database, got {config.DATABASE_URL!r}")
    return Path(url.database)


def _prune_old_backups(directory: Path, keep: int = BACKUP_RETENTION) -> None:
    """Remove backup files beyond the retention count."""

    backups = sorted(
        directory.glob("clockedout_backup_*.db"),
        key=lambda file: file.stat().st_mtime,
        reverse=True,
    )
    for stale in backups[keep:]:
        stale.unlink(missing_ok=True)


def backup_database(config: Optional[BaseConfig] = None, output_dir: Path | None = None) -> Path:
    """Copy the live database to a timestamped file.

    Uses SQLite's online backup API so a consistent snapshot is taken even
    while the WAL holds uncheckpointed pages.
    """

    config = config or BaseConfig()
    db_path = database_path(config)
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found at {db_path}")

    dest_dir = Path(output_dir) if output_dir is not None else Path(config.DATA_DIR) / "backups"
    _ensure_secure_directory(dest_dir)

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
    backup_path = dest_dir / f"clockedout_backup_{stamp}.db"
    with closing(sqlite3.connect(db_path)) as source, closing(sqlite3.connect(backup_path)) as target:
        source.backup(target)

    _prune_old_backups(dest_dir)
    logger.info("Database backed up", extra={"backup_path": str(backup_path)})
    return backup_path
