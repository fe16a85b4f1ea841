"""Per-household battery strategy and the battery update applied at tick end."""

from collections.abc import Iterable

from solarsense.config.schema import BatteryConfig
from solarsense.optimization.network import HouseholdForecast
from solarsense.sim.registry import Household
from solarsense.utils.enums import BatteryAction
from solarsense.utils.types import clamp


class BatteryStrategist:
    """Chooses charge/discharge/sell/buy from the forecast net balance and fill level."""

    def __init__(self, config: BatteryConfig | None = None):
        self.config = config or BatteryConfig()

    def choose_action(self, forecast: HouseholdForecast) -> BatteryAction:
        fill_ratio = forecast.stored_energy_kwh / max(forecast.battery_capacity_kwh, 1.0)
        if forecast.net_balance_kwh > 0:
            return BatteryAction.CHARGE if fill_ratio < self.config.charge_threshold else BatteryAction.SELL
        return BatteryAction.DISCHARGE if fill_ratio > self.config.discharge_threshold else BatteryAction.BUY

    def optimize(self, forecasts: Iterable[HouseholdForecast]) -> dict[int, BatteryAction]:
        """Return the battery action for every household, keyed by id."""
        return {forecast.household_id: self.choose_action(forecast) for forecast in forecasts}

    def apply(self, household: Household, action: BatteryAction) -> Household:
        """Return ``household`` with the battery level after one tick of ``action``.

        Charging adds the charge rate capped at capacity; discharging removes the
        discharge rate floored at empty. Sell and buy leave the level unchanged,
        as do offline households and households without a battery.
        """
        capacity = household.battery_capacity_kwh
        if not household.is_online or capacity <= 0:
            return household

        stored = household.stored_energy_kwh
        if action == BatteryAction.CHARGE:
            stored = min(capacity, stored + self.config.charge_rate_kwh)
        elif action == BatteryAction.DISCHARGE:
            stored = max(0.0, stored - self.config.discharge_rate_kwh)
        else:
            return household

        level_pct = clamp(stored / capacity * 100.0, 0.0, 100.0)
        return household.model_copy(update={"current_battery_level_pct": level_pct})


__all__ = ["BatteryStrategist"]
