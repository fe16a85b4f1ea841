"""Isolated simulation data context for the SolarSense engine.

This module provides the simulated household registry and the bounded,
append-only meter-reading and trade ledgers. Simulation households use a
reserved id range so they never collide with live marketplace records.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from solarsense.exceptions import HouseholdNotFoundError
from solarsense.utils.enums import TradeStatus, TradeType, WeatherConditionType
from solarsense.utils.logger import logger
from solarsense.utils.types import SIMULATION_HOUSEHOLD_ID_START, kW, kWh, stored_energy_kwh


class Household(BaseModel):
    """A prosumer household participating in the marketplace.

    Households are immutable records; the registry replaces them wholesale on
    update so a snapshot handed to readers never changes underneath them.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Unique household id")
    name: str = Field(..., min_length=1, description="Display name")
    address: str = Field(default="", description="Free-form address used for distance estimation")
    solar_capacity_kw: kW = Field(default=0.0, ge=0.0, description="Installed PV capacity in kW")
    battery_capacity_kwh: kWh = Field(default=0.0, ge=0.0, description="Usable battery capacity in kWh")
    current_battery_level_pct: float = Field(default=50.0, ge=0.0, le=100.0, description="Battery fill in percent")
    is_online: bool = Field(default=True, description="False while the household is cut off by an outage")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate household name is not empty."""
        if not v or not v.strip():
            raise ValueError("Household name cannot be empty")
        return v.strip()

    @property
    def stored_energy_kwh(self) -> kWh:
        """Energy currently held in the battery."""
        return stored_energy_kwh(self.current_battery_level_pct, self.battery_capacity_kwh)

    def __str__(self) -> str:
        """String representation of the household."""
        return (
            f"Household({self.id}: {self.name}, {self.solar_capacity_kw:.1f}kW PV, "
            f"{self.battery_capacity_kwh:.1f}kWh @ {self.current_battery_level_pct:.0f}%)"
        )


class EnergyReading(BaseModel):
    """A synthetic smart-meter reading appended once per tick per online household."""

    model_config = ConfigDict(frozen=True)

    id: int
    household_id: int
    timestamp: datetime
    solar_generation_wh: int = Field(..., ge=0)
    energy_consumption_wh: int = Field(..., ge=0)
    battery_level_pct: float = Field(..., ge=0.0, le=100.0)
    weather_condition: WeatherConditionType
    temperature_c: int


class EnergyTrade(BaseModel):
    """A completed simulated trade between two households."""

    model_config = ConfigDict(frozen=True)

    id: int
    seller_household_id: int
    buyer_household_id: int
    energy_amount_kwh: kWh = Field(..., gt=0.0)
    price_per_kwh: float = Field(..., ge=0.0)
    total_cost: float = Field(..., ge=0.0)
    trade_type: TradeType = TradeType.SURPLUS_SALE
    status: TradeStatus = TradeStatus.COMPLETED
    created_at: datetime
    completed_at: datetime | None = None


class HouseholdRegistry:
    """In-memory household registry for the simulation namespace.

    Iteration order is insertion order; matching and redistribution depend on
    it, so callers must not reorder the list returned by :meth:`list`.
    """

    def __init__(self, id_start: int = SIMULATION_HOUSEHOLD_ID_START):
        self._id_start = id_start
        self._next_id = id_start
        self._households: dict[int, Household] = {}

    def __len__(self) -> int:
        return len(self._households)

    def __contains__(self, household_id: object) -> bool:
        return household_id in self._households

    def list(self) -> list[Household]:
        """Return households in registry order."""
        return list(self._households.values())

    def get(self, household_id: int) -> Household | None:
        """Return a household or None when the id is unknown."""
        return self._households.get(household_id)

    def add(self, **fields: Any) -> Household:
        """Create a household with the next reserved id."""
        household = Household(id=self._next_id, **fields)
        self._households[household.id] = household
        self._next_id += 1
        logger.debug(f"Registered simulation household: {household}")
        return household

    def update(self, household_id: int, **changes: Any) -> Household:
        """Replace a household with a validated copy carrying ``changes``.

        Raises:
            HouseholdNotFoundError: If the id is not registered
        """
        current = self._households.get(household_id)
        if current is None:
            raise HouseholdNotFoundError(f"Household {household_id} not found")
        updated = Household.model_validate({**current.model_dump(), **changes})
        self._households[household_id] = updated
        return updated

    def replace_all(self, households: Iterable[Household]) -> None:
        """Commit a full set of households, preserving the given order."""
        self._households = {household.id: household for household in households}

    def known_ids(self, household_ids: Iterable[int]) -> list[int]:
        """Filter ``household_ids`` down to registered ids, dropping duplicates."""
        seen: set[int] = set()
        known: list[int] = []
        for household_id in household_ids:
            if household_id in self._households and household_id not in seen:
                seen.add(household_id)
                known.append(household_id)
        return known

    def clear(self) -> None:
        """Remove all households and restart the id range."""
        self._households.clear()
        self._next_id = self._id_start

    def seed_demo_households(self, hour: int) -> list[Household]:
        """Populate the registry with the demonstration network.

        Battery levels receive a deterministic perturbation keyed by household
        id and hour of day, clamped to [5, 95] percent.

        Args:
            hour: Current hour of day used for the perturbation

        Returns:
            The seeded households
        """
        seeded = []
        for spec in DEMO_HOUSEHOLDS:
            household_id = self._next_id
            variation = math.sin((household_id + hour) * math.pi / 6) * 15
            level = max(5.0, min(95.0, spec["current_battery_level_pct"] + variation))
            seeded.append(self.add(**{**spec, "current_battery_level_pct": level}))

        logger.info(f"Seeded {len(seeded)} demo households starting at id {seeded[0].id}")
        return seeded


DEMO_HOUSEHOLDS: list[dict[str, Any]] = [
    {
        "name": "Solar Pioneers (Demo)",
        "address": "Simulation District A",
        "solar_capacity_kw": 5.0,
        "battery_capacity_kwh": 15.0,
        "current_battery_level_pct": 15.0,
    },
    {
        "name": "Green Energy Hub (Demo)",
        "address": "Simulation District B",
        "solar_capacity_kw": 8.0,
        "battery_capacity_kwh": 20.0,
        "current_battery_level_pct": 95.0,
    },
    {
        "name": "Community Center (Demo)",
        "address": "Simulation Commercial Zone",
        "solar_capacity_kw": 12.0,
        "battery_capacity_kwh": 40.0,
        "current_battery_level_pct": 55.0,
    },
    {
        "name": "Eco Apartments (Demo)",
        "address": "Simulation District C",
        "solar_capacity_kw": 3.0,
        "battery_capacity_kwh": 10.0,
        "current_battery_level_pct": 25.0,
    },
    {
        "name": "Smart Home Alpha (Demo)",
        "address": "Simulation District A",
        "solar_capacity_kw": 6.0,
        "battery_capacity_kwh": 18.0,
        "current_battery_level_pct": 80.0,
    },
    {
        "name": "Tech Innovation Center (Demo)",
        "address": "Simulation Tech District",
        "solar_capacity_kw": 10.0,
        "battery_capacity_kwh": 30.0,
        "current_battery_level_pct": 40.0,
    },
    {
        "name": "Residential Complex Beta (Demo)",
        "address": "Simulation District D",
        "solar_capacity_kw": 4.0,
        "battery_capacity_kwh": 12.0,
        "current_battery_level_pct": 10.0,
    },
]


class EnergyLedger:
    """Bounded append-only ledgers of meter readings and trades.

    Each ledger keeps only its most recent entries; the oldest are dropped
    once the cap is reached.
    """

    def __init__(self, max_readings: int = 1000, max_trades: int = 500, id_start: int = 10000):
        self._readings: deque[EnergyReading] = deque(maxlen=max_readings)
        self._trades: deque[EnergyTrade] = deque(maxlen=max_trades)
        self._id_start = id_start
        self._next_reading_id = id_start
        self._next_trade_id = id_start

    @property
    def reading_count(self) -> int:
        return len(self._readings)

    @property
    def trade_count(self) -> int:
        return len(self._trades)

    def add_reading(self, **fields: Any) -> EnergyReading:
        """Append a reading, assigning the next reading id."""
        reading = EnergyReading(id=self._next_reading_id, **fields)
        self._next_reading_id += 1
        self._readings.append(reading)
        return reading

    def add_trade(self, **fields: Any) -> EnergyTrade:
        """Append a trade, assigning the next trade id."""
        trade = EnergyTrade(id=self._next_trade_id, **fields)
        self._next_trade_id += 1
        self._trades.append(trade)
        return trade

    def recent_readings(self, limit: int = 100) -> list[EnergyReading]:
        """Return up to ``limit`` most recent readings, oldest first."""
        if limit <= 0:
            return []
        return list(self._readings)[-limit:]

    def recent_trades(self, limit: int = 50) -> list[EnergyTrade]:
        """Return up to ``limit`` most recent trades, oldest first."""
        if limit <= 0:
            return []
        return list(self._trades)[-limit:]

    def clear(self) -> None:
        """Drop all ledger entries."""
        self._readings.clear()
        self._trades.clear()
        self._next_reading_id = self._id_start
        self._next_trade_id = self._id_start


__all__ = [
    "DEMO_HOUSEHOLDS",
    "EnergyLedger",
    "EnergyReading",
    "EnergyTrade",
    "Household",
    "HouseholdRegistry",
]
