#!/usr/bin/env python3
"""SolarSense Marketplace Demo.

This script runs the demo household network through a simulated afternoon:
a few sunny ticks, a storm, an outage on the weakest households and the
recovery, printing the optimizer's view after each phase.
"""

from datetime import datetime, timedelta

from solarsense import SimulationEngine
from solarsense.config.schema import ForecastConfig, SolarSenseConfig
from solarsense.sim.scheduler import ManualTickScheduler


class DemoClock:
    """Clock advancing one hour per tick."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, hours: int = 1) -> None:
        self.now += timedelta(hours=hours)


def create_engine(clock: DemoClock) -> SimulationEngine:
    """Create a seeded engine driven by manual ticks."""
    config = SolarSenseConfig(forecast=ForecastConfig(seed=7))
    engine = SimulationEngine(config=config, scheduler=ManualTickScheduler(), clock=clock)
    engine.start()
    return engine


def run_ticks(engine: SimulationEngine, clock: DemoClock, count: int) -> None:
    for _ in range(count):
        engine.scheduler.fire()
        clock.advance()


def show_phase(title: str, engine: SimulationEngine) -> None:
    result = engine.get_optimization_result()
    stats = engine.get_network_stats()

    print(f"\n=== {title} ===")
    print(f"Weather: {engine.status().current_weather}")
    print(
        f"Households online: {stats.active_households}/{stats.total_households}, "
        f"generation {stats.total_generation_kwh} kWh, demand {stats.total_consumption_kwh} kWh"
    )
    print(f"Grid stability: {result.grid_stability_score:.2f}, equity: {result.equitable_access.equity_score:.2f}")
    for pair in result.trading_pairs:
        price = result.prices.get(pair.supplier_id)
        print(f"  {pair} @ {price}")
    for recommendation in result.recommendations:
        print(f"  ! {recommendation}")
    print(f"Trading velocity {stats.trading_velocity_kwh} kWh, carbon saved {stats.carbon_reduction_kg} kg")


def main():
    """Run the demo."""
    clock = DemoClock(datetime(2024, 6, 15, 11))
    engine = create_engine(clock)

    run_ticks(engine, clock, 3)
    show_phase("Sunny midday", engine)

    engine.trigger_weather_change("stormy")
    run_ticks(engine, clock, 2)
    show_phase("Afternoon storm", engine)

    response = engine.trigger_outage()
    print(
        f"\nOutage: households {response.affected_household_ids}, "
        f"{response.surviving_capacity_kw:.1f} kW surviving, "
        f"recovery {response.estimated_recovery_time_hrs:.1f} h, resilience {response.community_resilience:.2f}"
    )
    run_ticks(engine, clock, 2)
    show_phase("During outage", engine)

    engine.restore_power(response.affected_household_ids)
    run_ticks(engine, clock, 1)
    show_phase("After recovery", engine)

    engine.stop()


if __name__ == "__main__":
    main()
