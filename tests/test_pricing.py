"""Tests for dynamic trade pricing."""

from datetime import datetime

import pytest
from solarsense.config.schema import PricingConfig
from solarsense.optimization.matcher import Matcher, TradingPair
from solarsense.optimization.network import HouseholdForecast, NetworkState
from solarsense.optimization.pricing import PriceOptimizer
from solarsense.utils.enums import TradePriority


def make_state(generation: float, demand: float, hour: int = 12) -> NetworkState:
    """Two-household state with the given network totals."""
    forecasts = (
        HouseholdForecast(household_id=1, predicted_generation_kwh=generation, predicted_demand_kwh=0.0),
        HouseholdForecast(household_id=2, predicted_generation_kwh=0.0, predicted_demand_kwh=demand),
    )
    return NetworkState(households=forecasts, timestamp=datetime(2024, 6, 1, hour))


def make_pair(priority=TradePriority.NORMAL, distance=5.0, supplier_id=1) -> TradingPair:
    return TradingPair(
        supplier_id=supplier_id,
        demander_id=2,
        energy_amount_kwh=1.0,
        distance_km=distance,
        priority=priority,
    )


class TestPriceComponents:
    """Test individual pricing factors."""

    def setup_method(self):
        """Set up test fixtures."""
        self.pricer = PriceOptimizer(PricingConfig())

    @pytest.mark.parametrize(
        "hour,expected",
        [(18, 7.50), (22, 7.50), (6, 6.20), (9, 6.20), (10, 4.80), (17, 4.80), (23, 3.20), (0, 3.20), (5, 3.20)],
    )
    def test_time_of_use(self, hour, expected):
        """Test the four time-of-use bands."""
        assert self.pricer.base_price(hour) == expected

    def test_transmission_loss(self):
        """Test transmission surcharge and its cap."""
        assert self.pricer.transmission_loss(15.0) == pytest.approx(0.045)
        assert self.pricer.transmission_loss(1000.0) == pytest.approx(0.50)

    @pytest.mark.parametrize(
        "generation,demand,expected",
        [(10.0, 10.0, 1.4), (10.0, 9.0, 1.2), (10.0, 7.0, 1.0), (10.0, 5.0, 0.9), (0.0, 1.0, 1.4)],
    )
    def test_congestion(self, generation, demand, expected):
        """Test the utilization bands."""
        assert PriceOptimizer.congestion_multiplier(generation, demand) == expected

    @pytest.mark.parametrize(
        "generation,demand,expected",
        [(5.0, 10.0, 1.5), (9.0, 10.0, 1.25), (10.0, 10.0, 1.0), (11.0, 10.0, 0.9), (15.0, 10.0, 0.75)],
    )
    def test_elasticity(self, generation, demand, expected):
        """Test the supply/demand bands."""
        assert PriceOptimizer.elasticity_multiplier(generation, demand) == expected

    def test_zero_demand_elasticity(self):
        """Test zero demand is treated as a surplus, not a division error."""
        assert PriceOptimizer.elasticity_multiplier(0.0, 0.0) == 1.5
        assert PriceOptimizer.elasticity_multiplier(5.0, 0.0) == 0.75


class TestPriceOptimizer:
    """Test full pair pricing."""

    def setup_method(self):
        """Set up test fixtures."""
        self.pricer = PriceOptimizer(PricingConfig())

    def test_price_formula(self):
        """Test the combined price at noon on a balanced network."""
        state = make_state(generation=10.0, demand=7.0)
        price = self.pricer.price_pair(make_pair(distance=1.0), state)
        # (4.80 + 0.003) * 1.0 congestion * 1.0 priority * 0.75 elasticity - 0.20
        assert price == pytest.approx(3.40)

    def test_priority_premium(self):
        """Test high and emergency priorities cost more."""
        state = make_state(generation=10.0, demand=7.0)
        normal = self.pricer.price_pair(make_pair(TradePriority.NORMAL), state)
        high = self.pricer.price_pair(make_pair(TradePriority.HIGH), state)
        emergency = self.pricer.price_pair(make_pair(TradePriority.EMERGENCY), state)
        assert normal < high < emergency

    def test_upper_bound(self):
        """Test prices are clamped at the maximum."""
        state = make_state(generation=1.0, demand=10.0, hour=19)
        assert self.pricer.price_pair(make_pair(TradePriority.EMERGENCY), state) == 12.00

    def test_lower_bound(self):
        """Test prices are clamped at the minimum."""
        state = make_state(generation=20.0, demand=5.0, hour=2)
        assert self.pricer.price_pair(make_pair(), state) == 2.50

    def test_configured_bounds(self):
        """Test custom market bounds are honoured."""
        pricer = PriceOptimizer(PricingConfig(min_price=3.0, max_price=5.0))
        state = make_state(generation=1.0, demand=10.0, hour=19)
        assert pricer.price_pair(make_pair(TradePriority.EMERGENCY), state) == 5.0

    def test_bounds_over_grid(self):
        """Test every combination stays within bounds and is rounded."""
        for hour in range(24):
            for generation, demand in [(0.0, 0.0), (1.0, 10.0), (10.0, 1.0), (5.0, 5.0)]:
                state = make_state(generation, demand, hour)
                for priority in TradePriority:
                    price = self.pricer.price_pair(make_pair(priority, distance=15.0), state)
                    assert 2.50 <= price <= 12.00
                    assert price == round(price, 2)

    def test_deterministic(self):
        """Test identical inputs price identically."""
        state = make_state(generation=6.0, demand=5.0, hour=8)
        pairs = [make_pair(TradePriority.HIGH)]
        assert self.pricer.calculate_optimal_prices(pairs, state) == self.pricer.calculate_optimal_prices(pairs, state)

    def test_keyed_by_supplier(self):
        """Test prices are keyed by supplier and the last pair wins."""
        state = make_state(generation=10.0, demand=7.0)
        pairs = [
            make_pair(TradePriority.NORMAL, supplier_id=1),
            make_pair(TradePriority.NORMAL, supplier_id=3),
            make_pair(TradePriority.EMERGENCY, supplier_id=1),
        ]
        prices = self.pricer.calculate_optimal_prices(pairs, state)
        assert set(prices) == {1, 3}
        assert prices[1] == self.pricer.price_pair(pairs[2], state)

    def test_no_pairs(self):
        """Test no pairs yields no prices."""
        assert self.pricer.calculate_optimal_prices([], make_state(1.0, 1.0)) == {}

    def test_two_household_scenario(self):
        """Test the matched high-priority trade prices above the off-peak base."""
        supplier = HouseholdForecast(
            household_id=1,
            address="Simulation District A",
            battery_capacity_kwh=10.0,
            battery_level_pct=90.0,
            predicted_generation_kwh=5.0,
            predicted_demand_kwh=1.0,
        )
        demander = HouseholdForecast(
            household_id=2,
            address="Simulation District B",
            battery_capacity_kwh=10.0,
            battery_level_pct=10.0,
            predicted_generation_kwh=0.5,
            predicted_demand_kwh=4.0,
        )
        state = NetworkState(households=(supplier, demander), timestamp=datetime(2024, 6, 1, 12))

        pairs = Matcher().identify_trading_pairs(state)
        prices = self.pricer.calculate_optimal_prices(pairs, state)

        assert pairs[0].priority == TradePriority.HIGH
        assert 2.50 <= prices[1] <= 12.00
        assert prices[1] > 3.20
