"""Default-rate management and retroactive salary recalculation."""

from __future__ import annotations

from ..domain.repositories import MonthlySummaryRepository, RatePreferences
from ..errors import RecordNotFound
from ..logging_config import get_logger
from ..models.monthly_summary import MonthlySummary
from ..models.rates import HourlyRates
from .salary import validate_rates

logger = get_logger(__name__)


class SettingsService:
    def __init__(self, preferences: RatePreferences, monthly_repo: MonthlySummaryRepository):
        self.preferences = preferences
        self.monthly_repo = monthly_repo

    def current_rates(self) -> HourlyRates:
        return self.preferences.load_rates()

    def update_default_rates(self, rates: HourlyRates) -> int:
        """Store new default rates and refresh every month's salary.

        Each month keeps its own stored rates; the recalculation only repairs
        salaries. Returns the number of months recalculated.
        """

        rates = validate_rates(rates)
        self.preferences.save_rates(rates)
        count = self.monthly_repo.recalculate_all_salaries()
        logger.info("Default rates updated", extra={"weekday": rates.weekday, "weekend": rates.weekend})
        return count

    def apply_rates_to_month(self, month: str, rates: HourlyRates) -> MonthlySummary:
        """Overwrite one month's rates and recompute its salary."""

        rates = validate_rates(rates)
        updated = self.monthly_repo.update_rates(month, rates)
        if updated is None:
            raise RecordNotFound(month)
        return updated
