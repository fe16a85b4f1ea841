"""Configuration schema models for the SolarSense energy-trading engine.

This module defines Pydantic models for configuration validation and runtime
settings of the forecasting, matching, pricing and simulation components.
"""

from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Environment(str, Enum):
    """Valid deployment environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SimulationConfig(BaseModel):
    """Configuration for the simulation tick loop and its isolated data context."""

    tick_interval_seconds: float = Field(default=10.0, gt=0.0, le=3600.0, description="Periodic tick interval")
    household_id_start: int = Field(default=1000, ge=1, description="First id of the reserved simulation id range")
    max_readings: int = Field(default=1000, ge=1, le=1_000_000, description="Meter readings kept in the ledger")
    max_trades: int = Field(default=500, ge=1, le=1_000_000, description="Trades kept in the ledger")
    outage_fraction: float = Field(
        default=0.25, gt=0.0, le=1.0, description="Share of households hit by an unspecified outage"
    )
    seed_demo_households: bool = Field(default=True, description="Seed demo households on first start")
    seed: int = Field(default=42, ge=0, description="Seed for on-demand optimization snapshots")


class ForecastConfig(BaseModel):
    """Configuration for generation and demand forecasting."""

    demand_variance_low: float = Field(default=0.8, gt=0.0, le=1.0, description="Lower demand variance factor")
    demand_variance_high: float = Field(default=1.2, ge=1.0, le=2.0, description="Upper demand variance factor")
    seed: int | None = Field(default=None, ge=0, description="Seed for the demand variance generator")


class MatchingConfig(BaseModel):
    """Configuration for supplier/demander matching."""

    max_trade_kwh: float = Field(default=2.0, gt=0.0, le=100.0, description="Hard cap on a single trade in kWh")


class PricingConfig(BaseModel):
    """Configuration for dynamic trade pricing."""

    peak_price: float = Field(default=7.50, gt=0.0, description="Evening peak rate (18-22h)")
    morning_price: float = Field(default=6.20, gt=0.0, description="Morning peak rate (6-9h)")
    daytime_price: float = Field(default=4.80, gt=0.0, description="Daytime rate (10-17h)")
    off_peak_price: float = Field(default=3.20, gt=0.0, description="Off-peak rate")
    transmission_loss_factor: float = Field(default=0.30, ge=0.0, description="Loss surcharge per 100 distance units")
    transmission_loss_cap: float = Field(default=0.50, ge=0.0, description="Maximum transmission surcharge")
    carbon_discount: float = Field(default=0.20, ge=0.0, description="Flat renewable discount per kWh")
    min_price: float = Field(default=2.50, ge=0.0, description="Lower market clearing bound")
    max_price: float = Field(default=12.00, gt=0.0, description="Upper market clearing bound")

    @model_validator(mode="after")
    def validate_bounds(self) -> Self:
        """Validate the price bounds are ordered."""
        if self.min_price >= self.max_price:
            raise ValueError("min_price must be less than max_price")
        return self


class BatteryConfig(BaseModel):
    """Configuration for battery strategy and per-tick battery deltas."""

    charge_rate_kwh: float = Field(default=2.0, gt=0.0, description="Energy added per tick when charging")
    discharge_rate_kwh: float = Field(default=1.5, gt=0.0, description="Energy removed per tick when discharging")
    charge_threshold: float = Field(default=0.8, gt=0.0, le=1.0, description="Fill ratio below which surplus charges")
    discharge_threshold: float = Field(
        default=0.3, ge=0.0, lt=1.0, description="Fill ratio above which a deficit discharges"
    )


class WeatherConfig(BaseModel):
    """Configuration for the weather source."""

    enable_live: bool = Field(default=False, description="Query the live weather feed on every tick")
    latitude: float = Field(default=30.7333, ge=-90.0, le=90.0, description="Network latitude in degrees")
    longitude: float = Field(default=76.7794, ge=-180.0, le=180.0, description="Network longitude in degrees")
    api_url: str = Field(default="https://api.open-meteo.com/v1/forecast", description="Open-Meteo endpoint")
    timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0, description="HTTP request timeout")
    retry_attempts: int = Field(default=3, ge=0, le=10, description="HTTP retry attempts")
    cache_ttl_seconds: int = Field(default=600, ge=0, le=86400, description="Live observation cache lifetime")
    fallback_bucket_minutes: int = Field(default=15, ge=1, le=1440, description="Fallback weather stability window")

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate the endpoint is an HTTP(S) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Weather API URL must start with http:// or https://")
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging parameters."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    file_path: str | None = Field(default=None, description="Optional rotating log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=1000, description="Maximum log file size in MB")
    backup_count: int = Field(default=5, ge=0, le=100, description="Number of backup log files to keep")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )
    enable_console: bool = Field(default=True, description="Enable console output")


class SolarSenseConfig(BaseModel):
    """Main configuration model for the SolarSense engine."""

    version: str = Field(default="0.1.0", description="SolarSense version")
    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Deployment environment")
    simulation: SimulationConfig = Field(default_factory=SimulationConfig, description="Simulation configuration")
    forecast: ForecastConfig = Field(default_factory=ForecastConfig, description="Forecast configuration")
    matching: MatchingConfig = Field(default_factory=MatchingConfig, description="Matching configuration")
    pricing: PricingConfig = Field(default_factory=PricingConfig, description="Pricing configuration")
    battery: BatteryConfig = Field(default_factory=BatteryConfig, description="Battery configuration")
    weather: WeatherConfig = Field(default_factory=WeatherConfig, description="Weather configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        if not v or not isinstance(v, str):
            raise ValueError("Version must be a non-empty string")
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format X.Y.Z")
        try:
            for part in parts:
                int(part)
        except ValueError:
            raise ValueError("Version parts must be integers") from None
        return v

    model_config = ConfigDict(
        use_enum_values=True,
        validate_default=True,
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "version": "0.1.0",
                "environment": "development",
                "simulation": {
                    "tick_interval_seconds": 10.0,
                    "household_id_start": 1000,
                    "max_readings": 1000,
                    "max_trades": 500,
                    "outage_fraction": 0.25,
                    "seed_demo_households": True,
                    "seed": 42,
                },
                "forecast": {"demand_variance_low": 0.8, "demand_variance_high": 1.2, "seed": None},
                "matching": {"max_trade_kwh": 2.0},
                "pricing": {"min_price": 2.50, "max_price": 12.00, "carbon_discount": 0.20},
                "battery": {"charge_rate_kwh": 2.0, "discharge_rate_kwh": 1.5},
                "weather": {"enable_live": False, "latitude": 30.7333, "longitude": 76.7794},
                "logging": {"level": "INFO", "enable_console": True},
            }
        },
    )
