"""SolarSense - forecasting, optimization and simulation for peer-to-peer solar energy trading."""

# The simulation package must load before the optimization package (see sim/__init__.py)
from .sim import Household, HouseholdRegistry, SimulationEngine, SimulationStatus
from .optimization import EnergyOptimizer, OptimizationResult

__version__ = "0.1.0"
__description__ = "Peer-to-peer solar energy trading simulation"

__all__ = [
    "EnergyOptimizer",
    "Household",
    "HouseholdRegistry",
    "OptimizationResult",
    "SimulationEngine",
    "SimulationStatus",
]
