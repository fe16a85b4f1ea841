"""Forecasting and energy distribution optimization for SolarSense."""

from solarsense.optimization.balancing import GridBalancer, GridBalancing, LoadManagement, LoadManager
from solarsense.optimization.battery import BatteryStrategist
from solarsense.optimization.equity import EquitableAccess, EquityModule, RedistributionPlan
from solarsense.optimization.forecaster import Forecaster
from solarsense.optimization.matcher import Matcher, TradingPair, address_distance
from solarsense.optimization.network import HouseholdForecast, NetworkAnalyzer, NetworkState
from solarsense.optimization.optimizer import EnergyOptimizer, OptimizationResult, grid_stability_score
from solarsense.optimization.outage import EmergencyRouting, OutageResponse, OutageSimulator
from solarsense.optimization.pricing import PriceOptimizer

__all__ = [
    "BatteryStrategist",
    "EmergencyRouting",
    "EnergyOptimizer",
    "EquitableAccess",
    "EquityModule",
    "Forecaster",
    "GridBalancer",
    "GridBalancing",
    "HouseholdForecast",
    "LoadManagement",
    "LoadManager",
    "Matcher",
    "NetworkAnalyzer",
    "NetworkState",
    "OptimizationResult",
    "OutageResponse",
    "OutageSimulator",
    "PriceOptimizer",
    "RedistributionPlan",
    "TradingPair",
    "address_distance",
    "grid_stability_score",
]
