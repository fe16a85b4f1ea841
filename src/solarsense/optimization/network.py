"""Network state analysis for the SolarSense optimizer.

This module builds the per-tick ``NetworkState`` snapshot: a forecast for every
household in registry order plus network totals.
"""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from solarsense.optimization.forecaster import Forecaster
from solarsense.sim.registry import Household
from solarsense.sim.weather import WeatherObservation
from solarsense.utils.types import DAYS_PER_WEEK, kWh, stored_energy_kwh


class HouseholdForecast(BaseModel):
    """A household together with its forecast for the current tick."""

    model_config = ConfigDict(frozen=True)

    household_id: int
    name: str = ""
    address: str = ""
    solar_capacity_kw: float = Field(default=0.0, ge=0.0)
    battery_capacity_kwh: kWh = Field(default=0.0, ge=0.0)
    battery_level_pct: float = Field(default=0.0, ge=0.0, le=100.0)
    is_online: bool = True
    predicted_generation_kwh: kWh = Field(..., ge=0.0)
    predicted_demand_kwh: kWh = Field(..., ge=0.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net_balance_kwh(self) -> kWh:
        """Generation minus demand; positive means surplus."""
        return self.predicted_generation_kwh - self.predicted_demand_kwh

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stored_energy_kwh(self) -> kWh:
        return stored_energy_kwh(self.battery_level_pct, self.battery_capacity_kwh)

    @property
    def available_energy_kwh(self) -> kWh:
        """Generation plus stored battery energy."""
        return self.predicted_generation_kwh + self.stored_energy_kwh

    @computed_field  # type: ignore[prop-decorator]
    @property
    def can_support(self) -> bool:
        return (
            self.predicted_generation_kwh > self.predicted_demand_kwh * 1.1
            or self.stored_energy_kwh > 0.8 * self.battery_capacity_kwh
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def needs_support(self) -> bool:
        return (
            self.predicted_generation_kwh < self.predicted_demand_kwh * 0.9
            or self.stored_energy_kwh < 0.3 * self.battery_capacity_kwh
        )

    @classmethod
    def from_household(cls, household: Household, generation_kwh: kWh, demand_kwh: kWh) -> "HouseholdForecast":
        return cls(
            household_id=household.id,
            name=household.name,
            address=household.address,
            solar_capacity_kw=household.solar_capacity_kw,
            battery_capacity_kwh=household.battery_capacity_kwh,
            battery_level_pct=household.current_battery_level_pct,
            is_online=household.is_online,
            predicted_generation_kwh=generation_kwh,
            predicted_demand_kwh=demand_kwh,
        )


class NetworkState(BaseModel):
    """Forecast snapshot of the whole network for one tick."""

    model_config = ConfigDict(frozen=True)

    households: tuple[HouseholdForecast, ...] = ()
    weather: WeatherObservation | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_generation_kwh(self) -> kWh:
        return sum(h.predicted_generation_kwh for h in self.households)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_demand_kwh(self) -> kWh:
        return sum(h.predicted_demand_kwh for h in self.households)

    @property
    def total_stored_energy_kwh(self) -> kWh:
        return sum(h.stored_energy_kwh for h in self.households)

    @property
    def hour(self) -> int:
        return self.timestamp.hour

    def get(self, household_id: int) -> HouseholdForecast | None:
        for forecast in self.households:
            if forecast.household_id == household_id:
                return forecast
        return None

    def __str__(self) -> str:
        """String representation of the network state."""
        return (
            f"NetworkState(households={len(self.households)}, "
            f"gen={self.total_generation_kwh:.2f}kWh, demand={self.total_demand_kwh:.2f}kWh)"
        )


class NetworkAnalyzer:
    """Builds a ``NetworkState`` from households, weather and time."""

    def __init__(self, forecaster: Forecaster | None = None):
        self.forecaster = forecaster or Forecaster()

    def analyze(
        self,
        households: Sequence[Household],
        weather: WeatherObservation | None,
        when: datetime,
    ) -> NetworkState:
        """Forecast every household for the hour containing ``when``.

        Args:
            households: Households in registry order
            weather: Current weather observation
            when: Tick timestamp; supplies hour, weekday and month

        Returns:
            The network snapshot, households in the given order
        """
        hour = when.hour
        # Python weekday() is Monday=0; the weekly pattern is Sunday=0
        day_of_week = (when.weekday() + 1) % DAYS_PER_WEEK

        forecasts = tuple(
            HouseholdForecast.from_household(
                household,
                self.forecaster.predict_generation(household, weather, hour, when.month),
                self.forecaster.predict_demand(household, hour, day_of_week, when.month),
            )
            for household in households
        )
        return NetworkState(households=forecasts, weather=weather, timestamp=when)


__all__ = ["HouseholdForecast", "NetworkAnalyzer", "NetworkState"]
