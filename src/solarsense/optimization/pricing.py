"""Dynamic pricing for matched trades.

The price of a pair is the time-of-use base rate plus a transmission-loss
surcharge, scaled by network congestion, trade priority and supply/demand
elasticity, less a flat carbon discount, clamped to the configured market
bounds.
"""

from collections.abc import Iterable

from solarsense.config.schema import PricingConfig
from solarsense.optimization.matcher import TradingPair
from solarsense.optimization.network import NetworkState
from solarsense.utils.enums import TradePriority
from solarsense.utils.logger import logger
from solarsense.utils.types import Price, clamp

PRIORITY_PREMIUM: dict[TradePriority, float] = {
    TradePriority.NORMAL: 1.0,
    TradePriority.HIGH: 1.25,
    TradePriority.EMERGENCY: 1.5,
}


class PriceOptimizer:
    """Computes per-supplier prices for a tick's trading pairs."""

    def __init__(self, config: PricingConfig | None = None):
        self.config = config or PricingConfig()

    def base_price(self, hour: int) -> Price:
        """Time-of-use rate for the given hour of day."""
        if 18 <= hour <= 22:
            return self.config.peak_price
        if 6 <= hour <= 9:
            return self.config.morning_price
        if 10 <= hour <= 17:
            return self.config.daytime_price
        return self.config.off_peak_price

    def transmission_loss(self, distance_km: float) -> Price:
        return min(self.config.transmission_loss_cap, distance_km / 100 * self.config.transmission_loss_factor)

    @staticmethod
    def congestion_multiplier(total_generation_kwh: float, total_demand_kwh: float) -> float:
        """Scale by grid utilization (demand over generation)."""
        utilization = total_demand_kwh / max(total_generation_kwh, 0.1)
        if utilization > 0.95:
            return 1.4
        if utilization > 0.85:
            return 1.2
        if utilization < 0.6:
            return 0.9
        return 1.0

    @staticmethod
    def elasticity_multiplier(total_generation_kwh: float, total_demand_kwh: float) -> float:
        """Shortage raises the price, surplus lowers it."""
        supply_ratio = total_generation_kwh / max(total_demand_kwh, 0.1)
        if supply_ratio < 0.8:
            return 1.5
        if supply_ratio < 0.95:
            return 1.25
        if supply_ratio > 1.2:
            return 0.75
        if supply_ratio > 1.05:
            return 0.9
        return 1.0

    def price_pair(self, pair: TradingPair, network_state: NetworkState) -> Price:
        """Price a single trading pair.

        Args:
            pair: Matched pair
            network_state: Snapshot supplying the hour and network totals

        Returns:
            Price per kWh clamped to the market bounds, rounded to 2 decimals
        """
        total_generation = network_state.total_generation_kwh
        total_demand = network_state.total_demand_kwh

        price = self.base_price(network_state.hour) + self.transmission_loss(pair.distance_km)
        price *= self.congestion_multiplier(total_generation, total_demand)
        price *= PRIORITY_PREMIUM[TradePriority(pair.priority)]
        price *= self.elasticity_multiplier(total_generation, total_demand)
        price -= self.config.carbon_discount

        return round(clamp(price, self.config.min_price, self.config.max_price), 2)

    def calculate_optimal_prices(
        self, trading_pairs: Iterable[TradingPair], network_state: NetworkState
    ) -> dict[int, Price]:
        """Price every pair, keyed by supplier id.

        A supplier appearing in several pairs keeps the price of its last pair.
        """
        prices: dict[int, Price] = {}
        for pair in trading_pairs:
            prices[pair.supplier_id] = self.price_pair(pair, network_state)

        if prices:
            logger.debug(f"Priced {len(prices)} suppliers at hour {network_state.hour}")
        return prices


__all__ = ["PriceOptimizer", "PRIORITY_PREMIUM"]
