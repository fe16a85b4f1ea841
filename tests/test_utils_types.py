"""Tests for domain constants, enums and numeric helpers."""

import solarsense.utils.types as types
import pytest
from solarsense.utils.enums import (
    BatteryAction,
    PriorityLevel,
    TradePriority,
    TradeStatus,
    TradeType,
    TransferType,
    WeatherConditionType,
)


class TestConstants:
    """Test domain constants."""

    def test_energy_constants(self):
        """Test unit and emission constants."""
        assert types.WH_PER_KWH == 1000.0
        assert types.CARBON_KG_PER_KWH == 0.45

    def test_calendar_constants(self):
        """Test the calendar periods used to index forecast curves."""
        assert types.HOURS_PER_DAY == 24
        assert types.DAYS_PER_WEEK == 7
        assert types.MONTHS_PER_YEAR == 12

    def test_simulation_id_range(self):
        """Test simulated households start at the reserved id."""
        assert types.SIMULATION_HOUSEHOLD_ID_START == 1000


class TestHelpers:
    """Test numeric helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [(-0.5, 0.0), (0.0, 0.0), (0.42, 0.42), (1.0, 1.0), (3.0, 1.0)],
    )
    def test_clamp01(self, value, expected):
        """Test clamping into the unit interval."""
        assert types.clamp01(value) == expected

    def test_clamp(self):
        """Test clamping into arbitrary bounds."""
        assert types.clamp(15.0, 2.5, 12.0) == 12.0
        assert types.clamp(1.0, 2.5, 12.0) == 2.5
        assert types.clamp(5.0, 2.5, 12.0) == 5.0

    def test_safe_ratio(self):
        """Test the zero-denominator guard."""
        assert types.safe_ratio(3.0, 2.0, default=1.0) == 1.5
        assert types.safe_ratio(3.0, 0.0, default=1.0) == 1.0
        assert types.safe_ratio(3.0, -1.0, default=0.5) == 0.5

    def test_stored_energy(self):
        """Test battery percentage to kWh conversion."""
        assert types.stored_energy_kwh(50.0, 10.0) == 5.0
        assert types.stored_energy_kwh(0.0, 10.0) == 0.0
        assert types.stored_energy_kwh(80.0, 0.0) == 0.0

    def test_kwh_to_wh(self):
        """Test kWh to Wh conversion."""
        assert types.kwh_to_wh(1.5) == 1500.0


class TestEnums:
    """Test string enumerations."""

    def test_weather_conditions(self):
        """Test the six weather conditions and their wire values."""
        assert [c.value for c in WeatherConditionType] == [
            "sunny",
            "partly-cloudy",
            "cloudy",
            "overcast",
            "rainy",
            "stormy",
        ]
        assert WeatherConditionType("partly-cloudy") == WeatherConditionType.PARTLY_CLOUDY

    def test_unknown_condition_rejected(self):
        """Test unknown condition strings raise ValueError."""
        with pytest.raises(ValueError):
            WeatherConditionType("foggy")

    def test_string_enum_values(self):
        """Test enums compare equal to their string values."""
        assert BatteryAction.CHARGE == "charge"
        assert TradePriority.EMERGENCY == "emergency"
        assert PriorityLevel.CRITICAL == "critical"
        assert TransferType.SCHEDULED == "scheduled"
        assert TradeStatus.COMPLETED == "completed"
        assert TradeType.SURPLUS_SALE == "surplus_sale"
