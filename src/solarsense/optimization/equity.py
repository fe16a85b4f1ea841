"""Equitable access scoring and surplus redistribution.

Every household gets an energy-security ratio of available energy over
demand. Households below 70 % security are vulnerable and receive transfers
from donors holding more than 120 % of their own demand. Donors are visited
first-fit in network order and their remaining surplus is tracked across
transfers.
"""

from pydantic import BaseModel, ConfigDict, Field

from solarsense.optimization.network import HouseholdForecast, NetworkState
from solarsense.utils.enums import PriorityLevel, TransferType
from solarsense.utils.logger import logger
from solarsense.utils.types import Ratio, kWh

VULNERABILITY_THRESHOLD = 0.7
DONOR_MARGIN = 1.2
MIN_TRANSFER_KWH = 0.1
IMMEDIATE_TRANSFER_LIMIT_KWH = 1.0
EMERGENCY_VULNERABLE_SHARE = 0.2


class HouseholdSecurity(BaseModel):
    model_config = ConfigDict(frozen=True)

    household_id: int
    energy_security: Ratio = Field(..., ge=0.0, le=1.0)
    is_vulnerable: bool
    priority_level: PriorityLevel


class RedistributionAction(BaseModel):
    """A single donor to beneficiary transfer."""

    model_config = ConfigDict(frozen=True)

    from_household_id: int
    to_household_id: int
    energy_amount_kwh: kWh = Field(..., ge=MIN_TRANSFER_KWH)
    transfer_type: TransferType
    priority: PriorityLevel


class RedistributionPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    actions: list[RedistributionAction] = Field(default_factory=list)
    total_redistributed_kwh: kWh = 0.0
    beneficiary_count: int = 0


class EquitableAccess(BaseModel):
    """Network equity summary for one tick."""

    model_config = ConfigDict(frozen=True)

    average_energy_security: Ratio = Field(..., ge=0.0, le=1.0)
    vulnerable_households: list[int] = Field(default_factory=list)
    redistribution_plan: RedistributionPlan = Field(default_factory=RedistributionPlan)
    equity_score: Ratio = Field(..., ge=0.0, le=1.0)
    emergency_support: bool = False


def security_ratio(forecast: HouseholdForecast) -> float:
    """Available energy over demand, unbounded; 1.0 when there is no demand."""
    if forecast.predicted_demand_kwh <= 0:
        return 1.0
    return forecast.available_energy_kwh / forecast.predicted_demand_kwh


def priority_level(ratio: float) -> PriorityLevel:
    if ratio < 0.3:
        return PriorityLevel.CRITICAL
    if ratio < 0.5:
        return PriorityLevel.HIGH
    if ratio < 0.7:
        return PriorityLevel.MEDIUM
    return PriorityLevel.LOW


class EquityModule:
    """Scores energy security and plans redistribution toward vulnerable households."""

    def assess(self, forecast: HouseholdForecast) -> HouseholdSecurity:
        ratio = security_ratio(forecast)
        return HouseholdSecurity(
            household_id=forecast.household_id,
            energy_security=max(0.0, min(1.0, ratio)),
            is_vulnerable=ratio < VULNERABILITY_THRESHOLD,
            priority_level=priority_level(ratio),
        )

    def ensure_equitable_access(self, network_state: NetworkState) -> EquitableAccess:
        """Compute security scores, the vulnerable set and a redistribution plan.

        An empty network is reported as fully secure and fully equitable.
        """
        assessments = [self.assess(forecast) for forecast in network_state.households]
        vulnerable = [a for a in assessments if a.is_vulnerable]
        total = len(assessments)

        if total == 0:
            return EquitableAccess(average_energy_security=1.0, equity_score=1.0)

        plan = self.calculate_redistribution_plan(network_state, vulnerable)
        access = EquitableAccess(
            average_energy_security=sum(a.energy_security for a in assessments) / total,
            vulnerable_households=[a.household_id for a in vulnerable],
            redistribution_plan=plan,
            equity_score=1 - len(vulnerable) / total,
            emergency_support=len(vulnerable) > total * EMERGENCY_VULNERABLE_SHARE,
        )

        if access.emergency_support:
            logger.warning(f"Emergency support required: {len(vulnerable)}/{total} households vulnerable")
        return access

    def calculate_redistribution_plan(
        self, network_state: NetworkState, vulnerable: list[HouseholdSecurity]
    ) -> RedistributionPlan:
        """First-fit redistribution from surplus donors to vulnerable households.

        Args:
            network_state: Forecast snapshot
            vulnerable: Vulnerable assessments in network order

        Returns:
            The transfers; donors never give more than their remaining surplus
            and are passed over once it drops below the minimum transfer
        """
        donor_surplus: dict[int, kWh] = {
            f.household_id: f.available_energy_kwh - f.predicted_demand_kwh
            for f in network_state.households
            if f.available_energy_kwh > f.predicted_demand_kwh * DONOR_MARGIN
        }

        actions: list[RedistributionAction] = []
        for assessment in vulnerable:
            forecast = network_state.get(assessment.household_id)
            if forecast is None:
                continue

            shortfall = forecast.predicted_demand_kwh - forecast.available_energy_kwh
            if shortfall <= 0:
                continue

            # Donors left with less than a minimum transfer are skipped
            donor_id = next(
                (
                    d
                    for d, surplus in donor_surplus.items()
                    if surplus >= MIN_TRANSFER_KWH and d != assessment.household_id
                ),
                None,
            )
            if donor_id is None:
                continue

            amount = min(shortfall, donor_surplus[donor_id])
            if amount < MIN_TRANSFER_KWH:
                continue

            actions.append(
                RedistributionAction(
                    from_household_id=donor_id,
                    to_household_id=assessment.household_id,
                    energy_amount_kwh=amount,
                    transfer_type=(
                        TransferType.IMMEDIATE if amount < IMMEDIATE_TRANSFER_LIMIT_KWH else TransferType.SCHEDULED
                    ),
                    priority=assessment.priority_level,
                )
            )
            donor_surplus[donor_id] -= amount

        return RedistributionPlan(
            actions=actions,
            total_redistributed_kwh=sum(a.energy_amount_kwh for a in actions),
            beneficiary_count=len({a.to_household_id for a in actions}),
        )


__all__ = [
    "EquitableAccess",
    "EquityModule",
    "HouseholdSecurity",
    "RedistributionAction",
    "RedistributionPlan",
    "priority_level",
    "security_ratio",
]
