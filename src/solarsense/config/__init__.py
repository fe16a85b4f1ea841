"""Configuration module for the SolarSense energy-trading engine.

This module provides configuration loading capabilities using Pydantic models
to read YAML configuration files for runtime settings.
"""

from .loaders import ConfigLoader, YamlConfigLoader, load_config_from_dict, load_config_from_yaml
from .schema import (
    BatteryConfig,
    ForecastConfig,
    LoggingConfig,
    MatchingConfig,
    PricingConfig,
    SimulationConfig,
    SolarSenseConfig,
    WeatherConfig,
)

__all__ = [
    # Configuration schema models
    "SolarSenseConfig",
    "SimulationConfig",
    "ForecastConfig",
    "MatchingConfig",
    "PricingConfig",
    "BatteryConfig",
    "WeatherConfig",
    "LoggingConfig",
    # Configuration loaders
    "ConfigLoader",
    "YamlConfigLoader",
    # Convenience functions
    "load_config_from_yaml",
    "load_config_from_dict",
]
