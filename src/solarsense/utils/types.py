"""Type definitions and constants for the SolarSense energy-trading engine.

This module provides type aliases, domain constants and small numeric helpers
shared by the forecasting, optimization and simulation layers.
"""

# =============================================================================
# Power and Energy Type Definitions
# =============================================================================

type kW = float  # Kilowatts
type kWh = float  # Kilowatt-hours
type Wh = float  # Watt-hours
type Price = float  # Currency units per kWh
type Ratio = float  # Dimensionless 0..1 score or ratio

# =============================================================================
# Domain Constants
# =============================================================================

HOURS_PER_DAY: int = 24
DAYS_PER_WEEK: int = 7
MONTHS_PER_YEAR: int = 12
WH_PER_KWH: float = 1000.0

# Avoided grid emissions per traded kWh
CARBON_KG_PER_KWH: float = 0.45

# Simulation households live in an id range disjoint from live marketplace data
SIMULATION_HOUSEHOLD_ID_START: int = 1000

# =============================================================================
# Numeric Helpers
# =============================================================================


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp a value into the closed interval [lower, upper]."""
    return max(lower, min(upper, value))


def clamp01(value: float) -> float:
    """Clamp a value into [0, 1]."""
    return clamp(value, 0.0, 1.0)


def safe_ratio(numerator: float, denominator: float, default: float) -> float:
    """Divide, returning ``default`` when the denominator is zero or negative."""
    if denominator <= 0:
        return default
    return numerator / denominator


def stored_energy_kwh(battery_level_pct: float, battery_capacity_kwh: kWh) -> kWh:
    """Convert a battery fill percentage into stored energy in kWh."""
    return battery_level_pct * battery_capacity_kwh / 100.0


def kwh_to_wh(energy_kwh: kWh) -> Wh:
    """Convert kilowatt-hours to watt-hours."""
    return energy_kwh * WH_PER_KWH
