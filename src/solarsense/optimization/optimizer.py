"""Energy distribution optimizer.

``EnergyOptimizer`` runs the per-tick pipeline over a network snapshot:
matching, pricing, battery strategy, grid balancing, load management and
equity. Every stage is a pure function of the snapshot.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from solarsense.config.schema import SolarSenseConfig
from solarsense.optimization.balancing import GridBalancer, GridBalancing, LoadManagement, LoadManager
from solarsense.optimization.battery import BatteryStrategist
from solarsense.optimization.equity import EquitableAccess, EquityModule
from solarsense.optimization.forecaster import Forecaster
from solarsense.optimization.matcher import Matcher, TradingPair
from solarsense.optimization.network import NetworkAnalyzer, NetworkState
from solarsense.optimization.outage import OutageResponse, OutageSimulator
from solarsense.optimization.pricing import PriceOptimizer
from solarsense.sim.registry import Household
from solarsense.sim.weather import WeatherObservation
from solarsense.utils.enums import BatteryAction
from solarsense.utils.logger import logger
from solarsense.utils.types import Price, Ratio, clamp01

STABILITY_ALERT_THRESHOLD = 0.7
DEFICIT_ALERT_RATIO = 0.8
HIGH_DEMAND_SHARE = 0.4

RECOMMEND_BATTERY_DEPLOYMENT = "Grid stability low - recommend immediate battery deployment"
RECOMMEND_DEMAND_RESPONSE = "Energy deficit detected - activate demand response programs"
RECOMMEND_LOAD_SHEDDING = "High network demand - consider temporary load shedding"


class OptimizationResult(BaseModel):
    """Full optimizer output for one tick."""

    model_config = ConfigDict(frozen=True)

    trading_pairs: list[TradingPair] = Field(default_factory=list)
    prices: dict[int, Price] = Field(default_factory=dict)
    battery_strategy: dict[int, BatteryAction] = Field(default_factory=dict)
    grid_stability_score: Ratio = Field(..., ge=0.0, le=1.0)
    recommendations: list[str] = Field(default_factory=list)
    grid_balancing: GridBalancing
    load_management: LoadManagement
    equitable_access: EquitableAccess
    timestamp: datetime

    def __str__(self) -> str:
        """String representation of the optimization result."""
        return (
            f"OptimizationResult(pairs={len(self.trading_pairs)}, "
            f"stability={self.grid_stability_score:.2f}, recommendations={len(self.recommendations)})"
        )


def grid_stability_score(network_state: NetworkState) -> Ratio:
    """One minus the relative imbalance between generation and demand.

    With no demand the grid is perfectly stable if anything is generating and
    neutral (0.5) if the network is idle.
    """
    total_generation = network_state.total_generation_kwh
    total_demand = network_state.total_demand_kwh
    if total_demand <= 0:
        return 1.0 if total_generation > 0 else 0.5
    return clamp01(1 - abs(total_generation - total_demand) / total_demand)


def generate_recommendations(network_state: NetworkState, stability: Ratio | None = None) -> list[str]:
    """Operator advice derived from stability, deficit and the share of households needing support."""
    if stability is None:
        stability = grid_stability_score(network_state)

    recommendations = []
    if stability < STABILITY_ALERT_THRESHOLD:
        recommendations.append(RECOMMEND_BATTERY_DEPLOYMENT)
    if network_state.total_generation_kwh < network_state.total_demand_kwh * DEFICIT_ALERT_RATIO:
        recommendations.append(RECOMMEND_DEMAND_RESPONSE)

    needing_support = sum(1 for h in network_state.households if h.needs_support)
    if needing_support > len(network_state.households) * HIGH_DEMAND_SHARE:
        recommendations.append(RECOMMEND_LOAD_SHEDDING)
    return recommendations


class EnergyOptimizer:
    """Facade over the forecasting and optimization components."""

    def __init__(self, config: SolarSenseConfig | None = None, forecaster: Forecaster | None = None):
        self.config = config or SolarSenseConfig()
        self.forecaster = forecaster or Forecaster(self.config.forecast)
        self.analyzer = NetworkAnalyzer(self.forecaster)
        self.matcher = Matcher(self.config.matching)
        self.pricer = PriceOptimizer(self.config.pricing)
        self.battery = BatteryStrategist(self.config.battery)
        self.balancer = GridBalancer()
        self.load_manager = LoadManager()
        self.equity = EquityModule()
        self.outage = OutageSimulator()

    def with_forecaster(self, forecaster: Forecaster) -> "EnergyOptimizer":
        """Return an optimizer sharing this configuration with a different forecaster."""
        return EnergyOptimizer(self.config, forecaster=forecaster)

    def analyze_network(
        self, households: Sequence[Household], weather: WeatherObservation | None, when: datetime
    ) -> NetworkState:
        return self.analyzer.analyze(households, weather, when)

    def optimize(self, network_state: NetworkState) -> OptimizationResult:
        """Run the optimization pipeline on an existing snapshot."""
        trading_pairs = self.matcher.identify_trading_pairs(network_state)
        stability = grid_stability_score(network_state)

        result = OptimizationResult(
            trading_pairs=trading_pairs,
            prices=self.pricer.calculate_optimal_prices(trading_pairs, network_state),
            battery_strategy=self.battery.optimize(network_state.households),
            grid_stability_score=stability,
            recommendations=generate_recommendations(network_state, stability),
            grid_balancing=self.balancer.calculate(network_state),
            load_management=self.load_manager.optimize(network_state),
            equitable_access=self.equity.ensure_equitable_access(network_state),
            timestamp=network_state.timestamp,
        )
        logger.debug(f"Optimized {network_state}: {result}")
        return result

    def optimize_energy_distribution(
        self, households: Sequence[Household], weather: WeatherObservation | None, when: datetime
    ) -> OptimizationResult:
        """Forecast the network at ``when`` and optimize it.

        Args:
            households: Households in registry order
            weather: Current weather observation
            when: Tick timestamp

        Returns:
            The optimization result
        """
        return self.optimize(self.analyze_network(households, weather, when))

    def simulate_outage_response(
        self, affected_ids: Iterable[int], households: Sequence[Household]
    ) -> OutageResponse:
        return self.outage.simulate_outage_response(affected_ids, households)


__all__ = [
    "EnergyOptimizer",
    "OptimizationResult",
    "generate_recommendations",
    "grid_stability_score",
]
