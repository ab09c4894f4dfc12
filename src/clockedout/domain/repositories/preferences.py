"""Rate preference store protocol."""

from __future__ import annotations

from typing import Protocol

from ...models.rates import HourlyRates


class RatePreferences(Protocol):
    """Key-value backed "last used" rates used to prefill imports."""

    def load_rates(self) -> HourlyRates:
        ...

    def save_rates(self, rates: HourlyRates) -> None:
        ...
