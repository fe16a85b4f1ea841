"""Simulation module for the SolarSense energy-trading network.

This module provides the isolated simulation namespace (household registry,
reading and trade ledgers), weather sources and the tick-driven simulation
engine.
"""

from .registry import EnergyLedger, EnergyReading, EnergyTrade, Household, HouseholdRegistry
from .scheduler import ManualTickScheduler, ThreadingTickScheduler, TickScheduler
from .weather import WeatherObservation, WeatherService, WeatherSimulator

# Imported last: the engine depends on the optimization package, which itself
# imports the registry and weather modules above.
from .engine import NetworkStats, SimulationEngine, SimulationStatus  # noqa: E402

__all__ = [
    "EnergyLedger",
    "EnergyReading",
    "EnergyTrade",
    "Household",
    "HouseholdRegistry",
    "ManualTickScheduler",
    "NetworkStats",
    "SimulationEngine",
    "SimulationStatus",
    "ThreadingTickScheduler",
    "TickScheduler",
    "WeatherObservation",
    "WeatherService",
    "WeatherSimulator",
]
