"""Greedy supplier/demander matching for the SolarSense marketplace.

Demanders are visited in registry order and each is paired with the nearest
supplier that still has surplus. Remaining balances are updated after every
pairing so the same surplus is never allocated twice. The algorithm is
first-fit, not a global assignment.
"""

from pydantic import BaseModel, ConfigDict, Field

from solarsense.config.schema import MatchingConfig
from solarsense.optimization.network import HouseholdForecast, NetworkState
from solarsense.utils.enums import TradePriority
from solarsense.utils.logger import logger
from solarsense.utils.types import kWh

MAX_DISTANCE_UNITS = 15


class TradingPair(BaseModel):
    """A proposed energy transfer from one supplier to one demander for a tick."""

    model_config = ConfigDict(frozen=True)

    supplier_id: int
    demander_id: int
    energy_amount_kwh: kWh = Field(..., gt=0.0)
    distance_km: float = Field(..., ge=1.0, le=MAX_DISTANCE_UNITS)
    priority: TradePriority = TradePriority.NORMAL

    def __str__(self) -> str:
        """String representation of the trading pair."""
        return (
            f"TradingPair({self.supplier_id}->{self.demander_id}, "
            f"{self.energy_amount_kwh:.2f}kWh, {self.distance_km:.0f}km, {self.priority.value})"
        )


def address_distance(address_a: str, address_b: str) -> float:
    """Deterministic stand-in for the distance between two addresses.

    Each address is reduced to the sum of its character code points; the
    distance is the absolute difference folded into 1..15.
    """
    checksum_a = sum(ord(ch) for ch in address_a)
    checksum_b = sum(ord(ch) for ch in address_b)
    return float(abs(checksum_a - checksum_b) % MAX_DISTANCE_UNITS + 1)


def determine_priority(battery_level_pct: float, net_balance_kwh: kWh) -> TradePriority:
    """Classify how urgently a demander needs energy."""
    if battery_level_pct < 10 and net_balance_kwh < -2:
        return TradePriority.EMERGENCY
    if battery_level_pct < 20 or net_balance_kwh < -1.5:
        return TradePriority.HIGH
    return TradePriority.NORMAL


class Matcher:
    """Pairs energy demanders with their nearest suitable suppliers."""

    def __init__(self, config: MatchingConfig | None = None):
        self.config = config or MatchingConfig()

    @staticmethod
    def is_supplier(forecast: HouseholdForecast) -> bool:
        return (
            forecast.predicted_generation_kwh > forecast.predicted_demand_kwh * 0.8
            or forecast.stored_energy_kwh > forecast.battery_capacity_kwh * 0.6
        )

    @staticmethod
    def is_demander(forecast: HouseholdForecast) -> bool:
        return (
            forecast.predicted_generation_kwh < forecast.predicted_demand_kwh * 1.2
            or forecast.stored_energy_kwh < forecast.battery_capacity_kwh * 0.4
        )

    def identify_trading_pairs(self, network_state: NetworkState) -> list[TradingPair]:
        """Greedily pair demanders with the nearest supplier holding surplus.

        Args:
            network_state: Forecast snapshot; households in registry order

        Returns:
            Trading pairs in demander visiting order
        """
        households = network_state.households
        suppliers = [h for h in households if self.is_supplier(h) and h.net_balance_kwh > 0]
        demanders = [h for h in households if self.is_demander(h)]

        # Working balances; the snapshot itself is never mutated
        remaining = {h.household_id: h.net_balance_kwh for h in households}
        pairs: list[TradingPair] = []

        for demander in demanders:
            deficit = -remaining[demander.household_id]
            if deficit <= 0:
                continue

            candidates = [
                s
                for s in suppliers
                if s.household_id != demander.household_id and remaining[s.household_id] > 0
            ]
            if not candidates:
                continue

            # min() keeps the first of equally distant suppliers, i.e. registry order
            supplier = min(candidates, key=lambda s: address_distance(s.address, demander.address))

            energy_amount = min(deficit, remaining[supplier.household_id], self.config.max_trade_kwh)
            if energy_amount <= 0:
                continue

            pair = TradingPair(
                supplier_id=supplier.household_id,
                demander_id=demander.household_id,
                energy_amount_kwh=energy_amount,
                distance_km=address_distance(supplier.address, demander.address),
                priority=determine_priority(demander.battery_level_pct, remaining[demander.household_id]),
            )
            pairs.append(pair)

            remaining[supplier.household_id] -= energy_amount
            remaining[demander.household_id] += energy_amount

        logger.debug(f"Matched {len(pairs)} trading pairs from {len(suppliers)} suppliers, {len(demanders)} demanders")
        return pairs


__all__ = ["Matcher", "TradingPair", "address_distance", "determine_priority"]
