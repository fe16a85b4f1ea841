"""Grid balancing and load management for one tick's network snapshot."""

from pydantic import BaseModel, ConfigDict, Field

from solarsense.optimization.network import NetworkState
from solarsense.utils.types import HOURS_PER_DAY, kWh, safe_ratio

LOAD_SHEDDING_THRESHOLD = 0.9
LOAD_REDUCTION_TARGET = 0.85
HOUSEHOLD_IMBALANCE_KWH = 2.0

PRIORITY_LOADS = ("refrigeration", "medical_equipment", "lighting")
DEFERRABLE_LOADS = ("water_heating", "air_conditioning", "electric_vehicle")

PEAK_START_HOUR = 17
PEAK_END_HOUR = 21


class GridBalancing(BaseModel):
    """Network-wide supply/demand balance and load-shedding advice."""

    model_config = ConfigDict(frozen=True)

    supply_demand_ratio: float = Field(..., ge=0.0)
    grid_load_factor: float = Field(..., ge=0.0, le=1.0)
    load_shedding_required: bool
    load_shedding_candidates: list[int] = Field(default_factory=list)
    grid_support_providers: list[int] = Field(default_factory=list)
    recommended_load_reduction_kwh: kWh = Field(default=0.0, ge=0.0)


class LoadShiftingStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)

    shiftable_load_kwh: kWh = Field(..., ge=0.0)
    optimal_shift_hour: int = Field(..., ge=0, le=23)
    potential_savings_kwh: kWh = Field(..., ge=0.0)


class LoadManagement(BaseModel):
    """Load categories and shifting opportunities for households in deficit."""

    model_config = ConfigDict(frozen=True)

    priority_loads: dict[int, list[str]] = Field(default_factory=dict)
    deferrable_loads: dict[int, list[str]] = Field(default_factory=dict)
    load_shifting_opportunities: dict[int, LoadShiftingStrategy] = Field(default_factory=dict)
    peak_demand_reduction_kwh: kWh = Field(default=0.0, ge=0.0)


class GridBalancer:
    """Computes the network load factor and who should shed or support."""

    def calculate(self, network_state: NetworkState) -> GridBalancing:
        total_generation = network_state.total_generation_kwh
        total_demand = network_state.total_demand_kwh
        total_available = total_generation + network_state.total_stored_energy_kwh

        supply_demand_ratio = safe_ratio(total_generation, total_demand, default=1.0)
        if total_available > 0:
            grid_load_factor = min(1.0, total_demand / total_available)
        else:
            # Nothing to draw on: fully loaded if anyone wants energy, idle otherwise
            grid_load_factor = 1.0 if total_demand > 0 else 0.0

        candidates: list[int] = []
        providers: list[int] = []
        for forecast in network_state.households:
            if forecast.net_balance_kwh < -HOUSEHOLD_IMBALANCE_KWH:
                candidates.append(forecast.household_id)
            elif forecast.net_balance_kwh > HOUSEHOLD_IMBALANCE_KWH:
                providers.append(forecast.household_id)

        shedding_required = grid_load_factor > LOAD_SHEDDING_THRESHOLD
        reduction = (grid_load_factor - LOAD_REDUCTION_TARGET) * total_demand if shedding_required else 0.0

        return GridBalancing(
            supply_demand_ratio=supply_demand_ratio,
            grid_load_factor=grid_load_factor,
            load_shedding_required=shedding_required,
            load_shedding_candidates=candidates,
            grid_support_providers=providers,
            recommended_load_reduction_kwh=reduction,
        )


class LoadManager:
    """Suggests load shifting for households whose demand exceeds generation plus storage."""

    @staticmethod
    def optimal_shift_hour(hour: int) -> int:
        """Move peak-hour load four hours out, anything else one hour; wraps past midnight."""
        if PEAK_START_HOUR <= hour <= PEAK_END_HOUR:
            return (hour + 4) % HOURS_PER_DAY
        return (hour + 1) % HOURS_PER_DAY

    def optimize(self, network_state: NetworkState) -> LoadManagement:
        hour = network_state.hour
        priority_loads: dict[int, list[str]] = {}
        deferrable_loads: dict[int, list[str]] = {}
        opportunities: dict[int, LoadShiftingStrategy] = {}

        for forecast in network_state.households:
            deficit = forecast.predicted_demand_kwh - forecast.available_energy_kwh
            if deficit <= 1:
                continue

            priority_loads[forecast.household_id] = list(PRIORITY_LOADS)
            deferrable_loads[forecast.household_id] = list(DEFERRABLE_LOADS)
            opportunities[forecast.household_id] = LoadShiftingStrategy(
                shiftable_load_kwh=min(deficit * 0.3, 2.0),
                optimal_shift_hour=self.optimal_shift_hour(hour),
                potential_savings_kwh=deficit * 0.15,
            )

        return LoadManagement(
            priority_loads=priority_loads,
            deferrable_loads=deferrable_loads,
            load_shifting_opportunities=opportunities,
            peak_demand_reduction_kwh=sum(s.potential_savings_kwh for s in opportunities.values()),
        )


__all__ = ["GridBalancer", "GridBalancing", "LoadManagement", "LoadManager", "LoadShiftingStrategy"]
