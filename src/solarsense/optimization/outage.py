"""Outage impact estimation and recovery planning."""

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from solarsense.sim.registry import Household
from solarsense.utils.logger import logger
from solarsense.utils.types import Ratio, clamp01, kW

RECOVERY_HOURS_PER_HOUSEHOLD = 0.5
PRIORITY_BATTERY_PCT = 20.0
EMPTY_NETWORK_RESILIENCE = 0.5


class EmergencyRouting(BaseModel):
    """Fixed emergency routing policy applied during an outage."""

    model_config = ConfigDict(frozen=True)

    critical_loads_first: bool = True
    max_distance_km: float = 10.0
    emergency_reserve_ratio: Ratio = 0.2
    available_capacity_kw: kW = Field(..., ge=0.0)


class OutageResponse(BaseModel):
    """Impact estimate and recovery plan for a set of affected households."""

    model_config = ConfigDict(frozen=True)

    affected_household_ids: list[int] = Field(default_factory=list)
    surviving_capacity_kw: kW = Field(..., ge=0.0)
    emergency_routing: EmergencyRouting
    estimated_recovery_time_hrs: float = Field(..., ge=0.0)
    priority_household_ids: list[int] = Field(default_factory=list)
    recovery_approach: str = "critical-first"
    community_resilience: Ratio = Field(..., ge=0.0, le=1.0)


class OutageSimulator:
    """Estimates how a network copes when some households lose grid power."""

    def simulate_outage_response(
        self, affected_ids: Iterable[int], households: Sequence[Household]
    ) -> OutageResponse:
        """Build the outage response for ``affected_ids``.

        Ids not present in ``households`` are ignored.

        Args:
            affected_ids: Households losing power
            households: The whole network

        Returns:
            The outage response
        """
        known = {h.id for h in households}
        affected = list(dict.fromkeys(i for i in affected_ids if i in known))
        affected_set = set(affected)

        surviving_capacity = sum(h.solar_capacity_kw for h in households if h.id not in affected_set)
        priority_ids = [
            h.id for h in households if h.id in affected_set and h.current_battery_level_pct < PRIORITY_BATTERY_PCT
        ]

        response = OutageResponse(
            affected_household_ids=affected,
            surviving_capacity_kw=surviving_capacity,
            emergency_routing=EmergencyRouting(available_capacity_kw=surviving_capacity * 0.8),
            estimated_recovery_time_hrs=RECOVERY_HOURS_PER_HOUSEHOLD * len(affected),
            priority_household_ids=priority_ids,
            community_resilience=self.resilience_score(households, len(affected)),
        )
        logger.info(
            f"Outage response: {len(affected)} affected, {surviving_capacity:.1f}kW surviving, "
            f"resilience {response.community_resilience:.2f}"
        )
        return response

    @staticmethod
    def resilience_score(households: Sequence[Household], affected_count: int) -> Ratio:
        """Weighted share of generation, storage and unaffected households."""
        total = len(households)
        if total == 0:
            return EMPTY_NETWORK_RESILIENCE

        with_generation = sum(1 for h in households if h.solar_capacity_kw > 0)
        with_battery = sum(1 for h in households if h.battery_capacity_kwh > 0)
        score = (
            0.4 * (with_generation / total)
            + 0.3 * (with_battery / total)
            + 0.3 * (1 - affected_count / total)
        )
        return clamp01(score)


__all__ = ["EmergencyRouting", "OutageResponse", "OutageSimulator"]
