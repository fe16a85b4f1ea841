"""Generation and demand forecasting for SolarSense households.

Both predictions are closed-form multi-factor heuristics. Generation is fully
deterministic; demand carries a bounded variance factor drawn from an
injectable numpy ``Generator`` so tests can seed or freeze it.
"""

import numpy as np

from solarsense.config.schema import ForecastConfig
from solarsense.sim.registry import Household
from solarsense.sim.weather import WeatherObservation
from solarsense.utils.enums import WeatherConditionType
from solarsense.utils.types import DAYS_PER_WEEK, HOURS_PER_DAY, MONTHS_PER_YEAR, kWh

# Clear-sky irradiance share per sky condition
CONDITION_MULTIPLIERS: dict[WeatherConditionType, float] = {
    WeatherConditionType.SUNNY: 1.00,
    WeatherConditionType.PARTLY_CLOUDY: 0.82,
    WeatherConditionType.CLOUDY: 0.45,
    WeatherConditionType.OVERCAST: 0.25,
    WeatherConditionType.RAINY: 0.15,
    WeatherConditionType.STORMY: 0.08,
}

# Peak-sun-hours curve, index = hour of day
SOLAR_CURVE = [
    0.0, 0.0, 0.0, 0.0, 0.0,
    0.02, 0.15, 0.35,
    0.58, 0.78, 0.92,
    0.98, 1.0, 0.98,
    0.92, 0.78, 0.58,
    0.35, 0.15, 0.02,
    0.0, 0.0, 0.0, 0.0,
]  # fmt: skip

# Seasonal PV yield, January first
SEASONAL_GENERATION = [0.6, 0.7, 0.8, 0.9, 1.0, 1.0, 1.0, 0.95, 0.85, 0.75, 0.65, 0.55]

# Residential load curve, index = hour of day; evening peak at 18h
DEMAND_CURVE = [
    0.45, 0.42, 0.40, 0.38, 0.40,
    0.45, 0.55, 0.75, 0.85, 0.72,
    0.65, 0.68, 0.70, 0.72, 0.75,
    0.78, 0.85, 0.95, 1.0, 0.92,
    0.80, 0.70, 0.58, 0.52,
]  # fmt: skip

# Weekly pattern, index = day of week with Sunday = 0
WEEKLY_DEMAND = [0.95, 1.0, 1.0, 1.0, 1.0, 0.98, 0.92]

# Seasonal HVAC load, January first
SEASONAL_DEMAND = [1.2, 1.15, 1.0, 0.9, 1.0, 1.3, 1.4, 1.4, 1.2, 0.95, 1.05, 1.2]

# Hourly base demand by household type in kWh
BASE_DEMAND_COMMERCIAL = 3.5
BASE_DEMAND_MULTI_FAMILY = 2.0
BASE_DEMAND_TECH = 1.8
BASE_DEMAND_RESIDENTIAL = 1.25

COMMERCIAL_KEYWORDS = ("commercial", "center", "innovation")
MULTI_FAMILY_KEYWORDS = ("apartments", "complex")
TECH_KEYWORDS = ("smart home", "tech")


class Forecaster:
    """Predicts per-household generation and demand for a given hour."""

    def __init__(self, config: ForecastConfig | None = None, rng: np.random.Generator | None = None):
        self.config = config or ForecastConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

    def with_rng(self, rng: np.random.Generator) -> "Forecaster":
        """Return a forecaster sharing this configuration but drawing from ``rng``."""
        return Forecaster(self.config, rng=rng)

    def predict_generation(
        self,
        household: Household,
        weather: WeatherObservation | None,
        hour_of_day: int,
        month: int = 6,
    ) -> kWh:
        """Predict solar generation for one hour.

        Args:
            household: Household whose PV capacity is the base
            weather: Current observation; None yields no generation
            hour_of_day: Hour 0-23
            month: Month 1-12 for the seasonal factor

        Returns:
            Predicted generation in kWh, never negative
        """
        if weather is None or household.solar_capacity_kw <= 0:
            return 0.0

        generation = (
            household.solar_capacity_kw
            * self.weather_multiplier(weather)
            * self.solar_curve(hour_of_day)
            * SEASONAL_GENERATION[(month - 1) % MONTHS_PER_YEAR]
        )
        return max(0.0, generation)

    def weather_multiplier(self, weather: WeatherObservation) -> float:
        """Combine condition, cloud cover and temperature impacts."""
        condition_impact = CONDITION_MULTIPLIERS.get(weather.condition, 0.0)
        cloud_cover_impact = max(0.1, 1 - (weather.cloud_cover_pct / 100) * 0.7)
        return condition_impact * cloud_cover_impact * self.temperature_impact(weather.temperature_c)

    @staticmethod
    def temperature_impact(temperature_c: float) -> float:
        """PV derating of 0.4 % per degree above 25 C, floored at 70 %."""
        if temperature_c <= 25:
            return 1.0
        return max(0.7, 1 - (temperature_c - 25) * 0.004)

    @staticmethod
    def solar_curve(hour_of_day: int) -> float:
        if hour_of_day < 5 or hour_of_day > 20:
            return 0.0
        return SOLAR_CURVE[hour_of_day]

    def predict_demand(self, household: Household, hour_of_day: int, day_of_week: int, month: int = 6) -> kWh:
        """Predict household consumption for one hour.

        Args:
            household: Household to forecast
            hour_of_day: Hour 0-23
            day_of_week: Day 0-6 with Sunday = 0
            month: Month 1-12 for the seasonal factor

        Returns:
            Predicted demand in kWh
        """
        variance = self.rng.uniform(self.config.demand_variance_low, self.config.demand_variance_high)
        return (
            self.base_demand(household)
            * DEMAND_CURVE[hour_of_day % HOURS_PER_DAY]
            * WEEKLY_DEMAND[day_of_week % DAYS_PER_WEEK]
            * self.household_adjustment(household)
            * SEASONAL_DEMAND[(month - 1) % MONTHS_PER_YEAR]
            * float(variance)
        )

    @staticmethod
    def base_demand(household: Household) -> kWh:
        """Classify the household by name keywords into a base hourly demand."""
        name = household.name.lower()
        if any(keyword in name for keyword in COMMERCIAL_KEYWORDS):
            return BASE_DEMAND_COMMERCIAL
        if any(keyword in name for keyword in MULTI_FAMILY_KEYWORDS):
            return BASE_DEMAND_MULTI_FAMILY
        if any(keyword in name for keyword in TECH_KEYWORDS):
            return BASE_DEMAND_TECH
        return BASE_DEMAND_RESIDENTIAL

    @staticmethod
    def household_adjustment(household: Household) -> float:
        """Nudge demand by battery fill and installed capacities, bounded to [0.7, 1.3]."""
        pattern = 1.0

        if household.current_battery_level_pct < 20:
            pattern *= 1.15
        if household.current_battery_level_pct > 80:
            pattern *= 0.92

        if household.solar_capacity_kw > 8:
            pattern *= 0.88
        if household.solar_capacity_kw == 0:
            pattern *= 1.05

        if household.battery_capacity_kwh > 13:
            pattern *= 0.85

        return max(0.7, min(1.3, pattern))


__all__ = ["Forecaster", "CONDITION_MULTIPLIERS", "SOLAR_CURVE"]
