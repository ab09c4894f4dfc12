"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from datetime import timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

_WEEK_START_DAYS = {"monday": 0, "sunday": 6}
_WEEKEND_POLICIES = {"friday_saturday", "saturday_sunday"}


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "ClockedOut"
    DB_FILENAME = "clockedout.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("CLOCKEDOUT_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("CLOCKEDOUT_DATABASE_URL", self._build_sqlite_url())

        self.DEFAULT_WEEKDAY_RATE = _env_float("CLOCKEDOUT_DEFAULT_WEEKDAY_RATE", 90.0)
        self.DEFAULT_WEEKEND_RATE = _env_float("CLOCKEDOUT_DEFAULT_WEEKEND_RATE", 100.0)

        self.WEEKEND_POLICY = os.getenv("CLOCKEDOUT_WEEKEND_POLICY", "friday_saturday").strip().lower()
        if self.WEEKEND_POLICY not in _WEEKEND_POLICIES:
            raise ValueError(
                f"CLOCKEDOUT_WEEKEND_POLICY must be one of {sorted(_WEEKEND_POLICIES)}, "
                f"got {self.WEEKEND_POLICY!r}"
            )

        week_start = os.getenv("CLOCKEDOUT_WEEK_START", "sunday").strip().lower()
        if week_start not in _WEEK_START_DAYS:
            raise ValueError(f"CLOCKEDOUT_WEEK_START must be 'sunday' or 'monday', got {week_start!r}")
        self.WEEK_START = week_start

        self.REPORT_TIMEZONE = os.getenv("CLOCKEDOUT_REPORT_TIMEZONE", "local").strip()
        self.FALLBACK_UTC_OFFSET_MINUTES = _env_int("CLOCKEDOUT_FALLBACK_UTC_OFFSET_MINUTES", 330)

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("CLOCKEDOUT_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {"check_same_thread": False}
        return {"connect_args": connect_args}

    @property
    def week_start_weekday(self) -> int:
        """First day of the reporting week as a ``date.weekday()`` number."""

        return _WEEK_START_DAYS[self.WEEK_START]

    def report_tzinfo(self) -> Optional[tzinfo]:
        """Resolve the timezone used to classify days and bucket weeks.

        ``None`` stands for the host zone; each instant is converted with
        ``datetime.astimezone()`` so its own daylight-saving offset applies.
        """

        name = self.REPORT_TIMEZONE
        if name.lower() == "local":
            return None
        if name.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown CLOCKEDOUT_REPORT_TIMEZONE: {name!r}") from exc

    def fallback_tzinfo(self) -> tzinfo:
        """Fixed offset assumed for timestamps that carry no usable zone."""

        return timezone(timedelta(minutes=self.FALLBACK_UTC_OFFSET_MINUTES))


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False
