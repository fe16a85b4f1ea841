"""Custom exceptions for the SolarSense energy-trading engine."""


class SolarSenseError(Exception):
    """Base exception for SolarSense errors."""

    pass


class ConfigurationError(SolarSenseError):
    """Exception raised for configuration errors."""

    pass


class WeatherSourceError(SolarSenseError):
    """Exception raised when a weather source cannot supply an observation."""

    pass


class SimulationError(SolarSenseError):
    """Exception raised for simulation lifecycle errors."""

    pass


class HouseholdNotFoundError(SimulationError):
    """Exception raised when a household id is not in the registry."""

    pass
