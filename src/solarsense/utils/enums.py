"""Domain enumerations for the SolarSense energy-trading engine.

This module defines enumerations for the string-valued concepts exchanged
between the forecasting, matching, pricing and simulation components.
"""

from enum import Enum


class WeatherConditionType(str, Enum):
    """Weather conditions affecting household solar generation."""

    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly-cloudy"
    CLOUDY = "cloudy"
    OVERCAST = "overcast"
    RAINY = "rainy"
    STORMY = "stormy"


class BatteryAction(str, Enum):
    """Per-tick battery strategy for a household."""

    CHARGE = "charge"
    DISCHARGE = "discharge"
    SELL = "sell"
    BUY = "buy"


class TradePriority(str, Enum):
    """Urgency of a proposed trading pair, seen from the demander side."""

    NORMAL = "normal"
    HIGH = "high"
    EMERGENCY = "emergency"


class PriorityLevel(str, Enum):
    """Energy-security priority of a household during scarcity."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TransferType(str, Enum):
    """Timing class of a redistribution transfer."""

    IMMEDIATE = "immediate"
    SCHEDULED = "scheduled"


class TradeStatus(str, Enum):
    """Lifecycle status of a ledger trade."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TradeType(str, Enum):
    """Kind of ledger trade."""

    SURPLUS_SALE = "surplus_sale"
    SELL = "sell"
    BUY = "buy"

