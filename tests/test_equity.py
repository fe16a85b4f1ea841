"""Tests for equitable access scoring and redistribution."""

import pytest
from solarsense.optimization.equity import EquityModule, priority_level, security_ratio
from solarsense.optimization.network import HouseholdForecast, NetworkState
from solarsense.utils.enums import PriorityLevel, TransferType


def make_forecast(household_id, generation, demand, level=0.0, capacity=0.0) -> HouseholdForecast:
    return HouseholdForecast(
        household_id=household_id,
        battery_capacity_kwh=capacity,
        battery_level_pct=level,
        predicted_generation_kwh=generation,
        predicted_demand_kwh=demand,
    )


def make_state(*forecasts) -> NetworkState:
    return NetworkState(households=tuple(forecasts))


class TestSecurity:
    """Test per-household security scoring."""

    def test_security_ratio(self):
        """Test available energy over demand, with no demand fully secure."""
        assert security_ratio(make_forecast(1, 1.0, 4.0)) == pytest.approx(0.25)
        assert security_ratio(make_forecast(1, 1.0, 1.0, level=50.0, capacity=2.0)) == pytest.approx(2.0)
        assert security_ratio(make_forecast(1, 0.0, 0.0)) == 1.0

    @pytest.mark.parametrize(
        "ratio,expected",
        [
            (0.1, PriorityLevel.CRITICAL),
            (0.3, PriorityLevel.HIGH),
            (0.49, PriorityLevel.HIGH),
            (0.5, PriorityLevel.MEDIUM),
            (0.69, PriorityLevel.MEDIUM),
            (0.7, PriorityLevel.LOW),
            (2.0, PriorityLevel.LOW),
        ],
    )
    def test_priority_level(self, ratio, expected):
        """Test priority bands."""
        assert priority_level(ratio) == expected

    def test_assessment_clamped(self):
        """Test energy security is clamped to [0, 1]."""
        assessment = EquityModule().assess(make_forecast(1, 5.0, 1.0))
        assert assessment.energy_security == 1.0
        assert assessment.is_vulnerable is False


class TestEquitableAccess:
    """Test network equity."""

    def setup_method(self):
        """Set up test fixtures."""
        self.module = EquityModule()

    def test_empty_network(self):
        """Test an empty network is fully equitable."""
        access = self.module.ensure_equitable_access(NetworkState())
        assert access.equity_score == 1.0
        assert access.average_energy_security == 1.0
        assert access.vulnerable_households == []
        assert access.emergency_support is False

    def test_equity_score(self):
        """Test equity score and vulnerable households."""
        state = make_state(
            make_forecast(1, 5.0, 1.0),
            make_forecast(2, 1.0, 4.0),
            make_forecast(3, 2.0, 2.0),
            make_forecast(4, 2.0, 2.0),
        )
        access = self.module.ensure_equitable_access(state)

        assert access.vulnerable_households == [2]
        assert access.equity_score == pytest.approx(0.75)
        assert access.average_energy_security == pytest.approx((1.0 + 0.25 + 1.0 + 1.0) / 4)
        assert access.emergency_support is True

    def test_emergency_threshold(self):
        """Test emergency support requires more than 20 % vulnerable."""
        state = make_state(
            make_forecast(1, 0.0, 4.0),
            *(make_forecast(i, 2.0, 2.0) for i in range(2, 6)),
        )
        assert self.module.ensure_equitable_access(state).emergency_support is False

    def test_redistribution(self):
        """Test donors cover vulnerable households and their surplus is tracked."""
        state = make_state(
            make_forecast(1, 0.0, 3.0),
            make_forecast(2, 5.0, 1.0),
            make_forecast(3, 0.5, 1.0),
        )
        plan = self.module.ensure_equitable_access(state).redistribution_plan

        assert [(a.from_household_id, a.to_household_id) for a in plan.actions] == [(2, 1), (2, 3)]
        assert plan.actions[0].energy_amount_kwh == pytest.approx(3.0)
        assert plan.actions[0].transfer_type == TransferType.SCHEDULED
        assert plan.actions[0].priority == PriorityLevel.CRITICAL
        assert plan.actions[1].energy_amount_kwh == pytest.approx(0.5)
        assert plan.actions[1].transfer_type == TransferType.IMMEDIATE
        assert plan.total_redistributed_kwh == pytest.approx(3.5)
        assert plan.beneficiary_count == 2

    def test_donor_surplus_exhausted(self):
        """Test no transfer below 0.1 kWh once the donor is nearly empty."""
        state = make_state(
            make_forecast(1, 0.0, 3.0),
            make_forecast(2, 4.05, 1.0),
            make_forecast(3, 0.0, 2.0),
        )
        plan = self.module.ensure_equitable_access(state).redistribution_plan

        assert len(plan.actions) == 1
        assert plan.actions[0].to_household_id == 1
        assert plan.beneficiary_count == 1

    def test_drained_donor_skipped(self):
        """Test a donor with a residual below 0.1 kWh is passed over for the next one."""
        state = make_state(
            make_forecast(1, 6.05, 5.0),
            make_forecast(2, 10.0, 5.0),
            make_forecast(3, 0.0, 1.0),
            make_forecast(4, 0.0, 1.0),
        )
        plan = self.module.ensure_equitable_access(state).redistribution_plan

        assert [(a.from_household_id, a.to_household_id) for a in plan.actions] == [(1, 3), (2, 4)]
        assert plan.actions[0].energy_amount_kwh == pytest.approx(1.0)
        assert plan.actions[1].energy_amount_kwh == pytest.approx(1.0)
        assert plan.beneficiary_count == 2

    def test_no_donors(self):
        """Test vulnerable households without donors get no transfers."""
        state = make_state(make_forecast(1, 0.0, 3.0), make_forecast(2, 1.0, 1.0))
        plan = self.module.ensure_equitable_access(state).redistribution_plan
        assert plan.actions == []
        assert plan.total_redistributed_kwh == 0.0

    def test_scores_bounded(self):
        """Test equity and security stay within [0, 1]."""
        state = make_state(*(make_forecast(i, float(i % 3), 2.0, level=i * 7.0, capacity=5.0) for i in range(1, 10)))
        access = self.module.ensure_equitable_access(state)
        assert 0.0 <= access.equity_score <= 1.0
        assert 0.0 <= access.average_energy_security <= 1.0
        for action in access.redistribution_plan.actions:
            assert action.energy_amount_kwh >= 0.1
