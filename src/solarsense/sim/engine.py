"""Simulation engine for the SolarSense marketplace.

``SimulationEngine`` owns the simulated household registry, the reading and
trade ledgers, the current weather and the cached optimization result. It runs
a periodic tick through a ``TickScheduler`` and exposes the control operations
used by the operator interfaces.

Ticks and control calls are serialized on a single re-entrant lock. Every
mutation ends by publishing a new immutable ``EngineSnapshot``; query methods
read the latest snapshot and never wait for a running tick.
"""

import math
import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from solarsense.config.schema import SolarSenseConfig
from solarsense.optimization.network import NetworkState
from solarsense.optimization.optimizer import EnergyOptimizer, OptimizationResult
from solarsense.optimization.outage import OutageResponse
from solarsense.sim.registry import EnergyLedger, EnergyReading, EnergyTrade, Household, HouseholdRegistry
from solarsense.sim.scheduler import ThreadingTickScheduler, TickScheduler
from solarsense.sim.weather import (
    FallbackWeatherGenerator,
    Location,
    OpenMeteoWeatherSource,
    WeatherObservation,
    WeatherService,
    WeatherSimulator,
)
from solarsense.utils.enums import BatteryAction, TradeStatus, TradeType, WeatherConditionType
from solarsense.utils.logger import logger
from solarsense.utils.types import CARBON_KG_PER_KWH, kwh_to_wh

VELOCITY_TRADE_WINDOW = 10
RECENT_TRADES_VIEW = 20
RECENT_READINGS_VIEW = 50


class NetworkStats(BaseModel):
    """Aggregate network figures, each rounded to 0.1."""

    model_config = ConfigDict(frozen=True)

    total_households: int = 0
    active_households: int = 0
    total_generation_kwh: float = 0.0
    total_consumption_kwh: float = 0.0
    total_stored_energy_kwh: float = 0.0
    trading_velocity_kwh: float = Field(default=0.0, description="Energy of the most recent trades")
    carbon_reduction_kg: float = Field(default=0.0, description="Avoided emissions of the most recent trades")


class SimulationStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_running: bool
    current_weather: WeatherObservation
    active_outage_ids: list[int] = Field(default_factory=list)
    network_stats: NetworkStats = Field(default_factory=NetworkStats)


class SimulationData(BaseModel):
    """Read-only view of the simulation namespace."""

    model_config = ConfigDict(frozen=True)

    households: list[Household] = Field(default_factory=list)
    recent_trades: list[EnergyTrade] = Field(default_factory=list)
    recent_readings: list[EnergyReading] = Field(default_factory=list)
    current_weather: WeatherObservation


class EngineSnapshot(BaseModel):
    """Immutable engine state published after every mutation."""

    model_config = ConfigDict(frozen=True)

    is_running: bool = False
    households: tuple[Household, ...] = ()
    weather: WeatherObservation
    active_outage_ids: tuple[int, ...] = ()
    optimization: OptimizationResult | None = None
    network_state: NetworkState | None = None
    network_stats: NetworkStats = Field(default_factory=NetworkStats)
    recent_trades: tuple[EnergyTrade, ...] = ()
    recent_readings: tuple[EnergyReading, ...] = ()
    tick_count: int = 0


class SimulationEngine:
    """Stateful simulation of a household energy-trading network.

    States are stopped (initial) and running. While running, the scheduler
    invokes :meth:`tick` periodically; each tick forecasts the network,
    optimizes it, records readings and trades and applies battery changes.
    A tick that raises is logged and discarded without touching any state.
    """

    def __init__(
        self,
        config: SolarSenseConfig | None = None,
        optimizer: EnergyOptimizer | None = None,
        scheduler: TickScheduler | None = None,
        weather: WeatherSimulator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the simulation engine.

        Args:
            config: Engine configuration (defaults apply when omitted)
            optimizer: Energy optimizer; built from ``config`` when omitted
            scheduler: Tick scheduler; a threading scheduler when omitted
            weather: Weather simulator; uses the live feed if enabled in ``config``
            clock: Source of the current time for ticks and overrides
        """
        self.config = config or SolarSenseConfig()
        sim_config = self.config.simulation

        self.optimizer = optimizer or EnergyOptimizer(self.config)
        self.scheduler = scheduler or ThreadingTickScheduler(sim_config.tick_interval_seconds)
        self.weather = weather or self._create_weather_simulator()
        self._clock = clock

        self.registry = HouseholdRegistry(id_start=sim_config.household_id_start)
        self.ledger = EnergyLedger(max_readings=sim_config.max_readings, max_trades=sim_config.max_trades)

        self._lock = threading.RLock()
        self._running = False
        self._active_outages: list[int] = []
        self._last_result: OptimizationResult | None = None
        self._last_state: NetworkState | None = None
        self._tick_count = 0
        self._snapshot = EngineSnapshot(weather=self.weather.current)

        logger.info(
            f"SimulationEngine initialized for {self.config.environment} with "
            f"{sim_config.tick_interval_seconds}s tick interval"
        )

    def _create_weather_simulator(self) -> WeatherSimulator:
        weather_config = self.config.weather
        location = Location(latitude=weather_config.latitude, longitude=weather_config.longitude)
        if not weather_config.enable_live:
            return WeatherSimulator(location=location)
        service = WeatherService(
            OpenMeteoWeatherSource(weather_config),
            FallbackWeatherGenerator(weather_config.fallback_bucket_minutes),
        )
        return WeatherSimulator(service=service, location=location)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._snapshot.is_running

    def start(self) -> None:
        """Start the periodic tick. Does nothing if already running.

        The demo households are seeded first when the registry is empty.
        """
        with self._lock:
            if self._running:
                logger.debug("Simulation already running")
                return

            if len(self.registry) == 0 and self.config.simulation.seed_demo_households:
                self.registry.seed_demo_households(self._clock().hour)

            self._running = True
            self.scheduler.start(self._run_scheduled_tick)
            self._publish()

        logger.info(f"Simulation started with {len(self.registry)} households")

    def stop(self) -> None:
        """Stop the periodic tick. Idempotent; no tick starts after this returns."""
        with self._lock:
            self.scheduler.cancel()
            if not self._running:
                return
            self._running = False
            self._publish()

        logger.info("Simulation stopped")

    def reset(self) -> None:
        """Stop the simulation and clear households, ledgers, outages and weather override."""
        with self._lock:
            self.scheduler.cancel()
            self._running = False
            self.registry.clear()
            self.ledger.clear()
            self._active_outages = []
            self._last_result = None
            self._last_state = None
            self._tick_count = 0
            self.weather.clear_override()
            self._publish()

        logger.info("Simulation data reset")

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _run_scheduled_tick(self) -> OptimizationResult | None:
        with self._lock:
            if not self._running:
                return None
            return self._tick()

    def tick(self) -> OptimizationResult | None:
        """Run one full tick now, whether or not the engine is running.

        Returns:
            The optimization result, or None if the tick failed
        """
        with self._lock:
            return self._tick()

    def _tick(self) -> OptimizationResult | None:
        now = self._clock()
        try:
            weather = self.weather.observe(now)
            households = self.registry.list()
            online = [h for h in households if h.is_online]

            network_state = self.optimizer.analyze_network(online, weather, now)
            result = self.optimizer.optimize(network_state)

            readings = self._build_readings(network_state, weather, now)
            trades = self._build_trades(result, now)
            updated = [self._apply_battery(h, result.battery_strategy.get(h.id)) for h in households]
        except Exception:
            logger.exception("Simulation tick failed; state left unchanged")
            return None

        for reading in readings:
            self.ledger.add_reading(**reading)
        for trade in trades:
            recorded = self.ledger.add_trade(**trade)
            logger.debug(
                f"Trade {recorded.id}: {recorded.seller_household_id} -> {recorded.buyer_household_id}, "
                f"{recorded.energy_amount_kwh:.2f}kWh @ {recorded.price_per_kwh:.2f}"
            )
        self.registry.replace_all(updated)
        self.weather.commit(weather)

        self._last_result = result
        self._last_state = network_state
        self._tick_count += 1
        self._publish()

        advice = result.recommendations[0] if result.recommendations else "none"
        logger.info(
            f"Tick {self._tick_count}: {weather.condition.value}, stability {result.grid_stability_score:.2f}, "
            f"{len(trades)} trades, recommendation: {advice}"
        )
        return result

    def _build_readings(
        self, network_state: NetworkState, weather: WeatherObservation, now: datetime
    ) -> list[dict]:
        readings = []
        for forecast in network_state.households:
            variance = math.sin((now.hour + forecast.household_id) * math.pi / 12) * 0.1
            generation = max(0.0, forecast.predicted_generation_kwh * (1 + variance))
            consumption = max(0.0, forecast.predicted_demand_kwh * (1 + variance * 1.5))
            readings.append(
                {
                    "household_id": forecast.household_id,
                    "timestamp": now,
                    "solar_generation_wh": round(kwh_to_wh(generation)),
                    "energy_consumption_wh": round(kwh_to_wh(consumption)),
                    "battery_level_pct": forecast.battery_level_pct,
                    "weather_condition": weather.condition,
                    "temperature_c": round(weather.temperature_c),
                }
            )
        return readings

    def _build_trades(self, result: OptimizationResult, now: datetime) -> list[dict]:
        trades = []
        for pair in result.trading_pairs:
            price = result.prices.get(pair.supplier_id, self.config.pricing.min_price)
            trades.append(
                {
                    "seller_household_id": pair.supplier_id,
                    "buyer_household_id": pair.demander_id,
                    "energy_amount_kwh": pair.energy_amount_kwh,
                    "price_per_kwh": price,
                    "total_cost": round(pair.energy_amount_kwh * price, 2),
                    "trade_type": TradeType.SURPLUS_SALE,
                    "status": TradeStatus.COMPLETED,
                    "created_at": now,
                    "completed_at": now,
                }
            )
        return trades

    def _apply_battery(self, household: Household, action: BatteryAction | None) -> Household:
        if action is None:
            return household
        return self.optimizer.battery.apply(household, action)

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------

    def add_household(self, **fields: Any) -> Household:
        """Register a simulation household with the next reserved id."""
        with self._lock:
            household = self.registry.add(**fields)
            self._publish()
            return household

    def trigger_weather_change(self, condition: WeatherConditionType | str) -> WeatherObservation:
        """Override the weather and immediately run one tick.

        Raises:
            ValueError: If ``condition`` is not a known weather condition
        """
        with self._lock:
            observation = self.weather.set_weather(condition, self._clock())
            logger.info(f"Weather changed to {observation}")
            self._tick()
            self._publish()
            return observation

    def trigger_outage(self, household_ids: Iterable[int] | None = None) -> OutageResponse:
        """Take households offline and return the outage response.

        Without ids, the lowest-battery share of households (``outage_fraction``,
        rounded up) is selected. Unknown ids are ignored.
        """
        with self._lock:
            households = self.registry.list()
            requested = list(household_ids) if household_ids is not None else []

            if requested:
                affected = self.registry.known_ids(requested)
            else:
                count = math.ceil(len(households) * self.config.simulation.outage_fraction)
                ranked = sorted(households, key=lambda h: (h.current_battery_level_pct, h.id))
                affected = [h.id for h in ranked[:count]]

            response = self.optimizer.simulate_outage_response(affected, households)

            for household_id in affected:
                self.registry.update(household_id, is_online=False)
                if household_id not in self._active_outages:
                    self._active_outages.append(household_id)
            self._publish()

        logger.warning(f"Outage triggered for households {affected}")
        return response

    def restore_power(self, household_ids: Iterable[int]) -> list[int]:
        """Bring households back online. Unknown ids are ignored.

        Returns:
            The ids that were restored
        """
        with self._lock:
            restored = self.registry.known_ids(household_ids)
            for household_id in restored:
                self.registry.update(household_id, is_online=True)
            self._active_outages = [i for i in self._active_outages if i not in restored]
            self._publish()

        logger.info(f"Power restored for households {restored}")
        return restored

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_optimization_result(self) -> OptimizationResult:
        """Return the latest tick's result, or compute one for the current snapshot.

        The on-demand computation uses a freshly seeded forecaster so repeated
        calls agree, and nothing is cached or mutated.
        """
        snapshot = self._snapshot
        if snapshot.optimization is not None:
            return snapshot.optimization

        rng = np.random.default_rng(self.config.simulation.seed)
        optimizer = self.optimizer.with_forecaster(self.optimizer.forecaster.with_rng(rng))
        online = [h for h in snapshot.households if h.is_online]
        return optimizer.optimize_energy_distribution(online, snapshot.weather, self._clock())

    def status(self) -> SimulationStatus:
        snapshot = self._snapshot
        return SimulationStatus(
            is_running=snapshot.is_running,
            current_weather=snapshot.weather,
            active_outage_ids=list(snapshot.active_outage_ids),
            network_stats=snapshot.network_stats,
        )

    def get_network_stats(self) -> NetworkStats:
        return self._snapshot.network_stats

    def get_simulation_data(self) -> SimulationData:
        snapshot = self._snapshot
        return SimulationData(
            households=list(snapshot.households),
            recent_trades=list(snapshot.recent_trades),
            recent_readings=list(snapshot.recent_readings),
            current_weather=snapshot.weather,
        )

    # ------------------------------------------------------------------
    # Snapshot publication
    # ------------------------------------------------------------------

    def _publish(self) -> None:
        """Swap in a new snapshot; callers hold the lock."""
        households = tuple(self.registry.list())
        self._snapshot = EngineSnapshot(
            is_running=self._running,
            households=households,
            weather=self.weather.current,
            active_outage_ids=tuple(self._active_outages),
            optimization=self._last_result,
            network_state=self._last_state,
            network_stats=self._compute_network_stats(households),
            recent_trades=tuple(self.ledger.recent_trades(RECENT_TRADES_VIEW)),
            recent_readings=tuple(self.ledger.recent_readings(RECENT_READINGS_VIEW)),
            tick_count=self._tick_count,
        )

    def _compute_network_stats(self, households: tuple[Household, ...]) -> NetworkStats:
        online = [h for h in households if h.is_online]
        online_ids = {h.id for h in online}

        generation = consumption = 0.0
        if self._last_state is not None:
            for forecast in self._last_state.households:
                if forecast.household_id in online_ids:
                    generation += forecast.predicted_generation_kwh
                    consumption += forecast.predicted_demand_kwh

        # Velocity and avoided emissions both cover the most recent trades only
        velocity = sum(t.energy_amount_kwh for t in self.ledger.recent_trades(VELOCITY_TRADE_WINDOW))

        return NetworkStats(
            total_households=len(households),
            active_households=len(online),
            total_generation_kwh=round(generation, 1),
            total_consumption_kwh=round(consumption, 1),
            total_stored_energy_kwh=round(sum(h.stored_energy_kwh for h in online), 1),
            trading_velocity_kwh=round(velocity, 1),
            carbon_reduction_kg=round(velocity * CARBON_KG_PER_KWH, 1),
        )


__all__ = ["EngineSnapshot", "NetworkStats", "SimulationData", "SimulationEngine", "SimulationStatus"]
