"""Settings repository for app-level key/value pairs and the rate preference store."""

from __future__ import annotations

from typing import Callable, Optional

from sqlmodel import Session, select

from ...logging_config import get_logger
from ...models.rates import HourlyRates
from ...models.settings import AppSetting
from .errors import storage_errors

logger = get_logger(__name__)

WEEKDAY_RATE_KEY = "weekday_rate"
WEEKEND_RATE_KEY = "weekend_rate"


class SQLModelSettingsRepository:
    """SQLModel-based settings repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[AppSetting]:
        with storage_errors(f"get setting {key}", write=False):
            with self.session_factory() as session:
                setting = session.exec(select(AppSetting).where(AppSetting.key == key)).first()
                if setting is not None:
                    session.expunge(setting)
                return setting

    def set(self, key: str, value: str, description: str | None = None) -> AppSetting:
        with storage_errors(f"set setting {key}", write=True):
            with self.session_factory() as session:
                setting = session.exec(select(AppSetting).where(AppSetting.key == key)).first()
                if setting:
                    setting.value = value
                    setting.description = description
                else:
                    setting = AppSetting(key=key, value=value, description=description)
                    session.add(setting)
                session.commit()
                session.refresh(setting)
                session.expunge(setting)
                return setting

    def delete(self, key: str) -> None:
        with storage_errors(f"delete setting {key}", write=True):
            with self.session_factory() as session:
                setting = session.exec(select(AppSetting).where(AppSetting.key == key)).first()
                if setting:
                    session.delete(setting)
                    session.commit()


class SettingsRatePreferences:
    """Last-used hourly rates persisted in the ``app_setting`` table."""

    def __init__(self, settings_repo: SQLModelSettingsRepository, defaults: HourlyRates):
        self.settings_repo = settings_repo
        self.defaults = defaults

    def _load(self, key: str, default: float) -> float:
        setting = self.settings_repo.get(key)
        if setting is None:
            return default
        try:
            return float(setting.value)
        except ValueError:
            logger.warning("Ignoring unreadable stored rate", extra={"key": key, "value": setting.value})
            return default

    def load_rates(self) -> HourlyRates:
        return HourlyRates(
            weekday=self._load(WEEKDAY_RATE_KEY, self.defaults.weekday),
            weekend=self._load(WEEKEND_RATE_KEY, self.defaults.weekend),
        )

    def save_rates(self, rates: HourlyRates) -> None:
        self.settings_repo.set(WEEKDAY_RATE_KEY, repr(float(rates.weekday)), "Last used weekday rate")
        self.settings_repo.set(WEEKEND_RATE_KEY, repr(float(rates.weekend)), "Last used weekend rate")
        logger.info("Saved default rates", extra={"weekday": rates.weekday, "weekend": rates.weekend})


__all__ = ["SQLModelSettingsRepository", "SettingsRatePreferences"]
