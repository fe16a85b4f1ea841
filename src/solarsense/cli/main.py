"""Main CLI interface for the SolarSense energy-trading engine.

This module provides the command-line interface using the Typer framework.
Each command runs an in-process simulation engine driven by manual ticks.

Usage:
    solarsense simulate --ticks 6 --weather cloudy --outage
    solarsense status
    solarsense weather stormy
    solarsense version
"""

import logging
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from solarsense.config.loaders import YamlConfigLoader
from solarsense.config.schema import SolarSenseConfig
from solarsense.optimization.optimizer import OptimizationResult
from solarsense.sim.engine import SimulationEngine
from solarsense.sim.scheduler import ManualTickScheduler
from solarsense.utils.enums import WeatherConditionType
from solarsense.utils.logger import configure_logging, logger

# Create console for rich output
console = Console()

# Create main Typer app
app = typer.Typer(
    name="solarsense",
    help="SolarSense - peer-to-peer solar energy trading simulation",
    add_completion=False,
    rich_markup_mode="rich",
)


def create_cli_app() -> typer.Typer:
    """Return the configured CLI application."""
    return app


def load_cli_config(config_file: str | None = None) -> SolarSenseConfig:
    """Load configuration from ``config_file`` (optional) with environment overrides.

    Raises:
        FileNotFoundError: If config file not found
    """
    return YamlConfigLoader().load_config_with_env_override(config_file)


def create_engine(config: SolarSenseConfig) -> SimulationEngine:
    """Create an engine driven by manual ticks and start it with the demo network."""
    engine = SimulationEngine(config=config, scheduler=ManualTickScheduler())
    engine.start()
    return engine


@app.command()
def simulate(
    ticks: int = typer.Option(6, "--ticks", "-t", help="Number of ticks to run"),
    weather: str | None = typer.Option(None, "--weather", "-w", help="Weather condition override"),
    outage: bool = typer.Option(False, "--outage", help="Trigger an outage on the lowest-battery households"),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Configuration file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> dict[str, Any]:
    """Run the simulation for a number of ticks and print the resulting network."""
    return simulate_command(ticks=ticks, weather=weather, outage=outage, config_file=config_file, verbose=verbose)


def simulate_command(
    ticks: int = 6,
    weather: str | None = None,
    outage: bool = False,
    config_file: str | None = None,
    verbose: bool = False,
) -> dict[str, Any]:
    """Execute the simulate command.

    Args:
        ticks: Number of ticks to run
        weather: Optional weather condition override
        outage: Trigger an outage before ticking
        config_file: Optional configuration file path
        verbose: Enable debug logging

    Returns:
        Summary dictionary with status, tick count, trades and network stats

    Raises:
        ValueError: If ``ticks`` is negative or ``weather`` is unknown
    """
    if ticks < 0:
        raise ValueError("Tick count cannot be negative")
    if weather is not None:
        weather = parse_condition(weather)

    config = load_cli_config(config_file)
    configure_logging(config.logging)
    if verbose:
        logger.setLevel(logging.DEBUG)

    engine = create_engine(config)
    outage_response = None
    try:
        if weather is not None:
            engine.trigger_weather_change(weather)
        if outage:
            outage_response = engine.trigger_outage()

        results: list[OptimizationResult] = []
        for _ in range(ticks):
            result = engine.tick()
            if result is not None:
                results.append(result)
    finally:
        engine.stop()

    data = engine.get_simulation_data()
    stats = engine.status().network_stats

    table = Table(title="SolarSense Households")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("PV kW", justify="right")
    table.add_column("Battery", justify="right", style="green")
    table.add_column("Online")
    for household in data.households:
        table.add_row(
            str(household.id),
            household.name,
            f"{household.solar_capacity_kw:.1f}",
            f"{household.current_battery_level_pct:.0f}%",
            "yes" if household.is_online else "[red]no[/red]",
        )
    console.print(table)
    console.print(f"[bold blue]Weather:[/bold blue] {data.current_weather}")
    console.print(
        f"[bold blue]Trades:[/bold blue] {len(data.recent_trades)} recent, "
        f"velocity {stats.trading_velocity_kwh} kWh, carbon saved {stats.carbon_reduction_kg} kg"
    )
    if outage_response is not None:
        console.print(
            f"[bold yellow]Outage:[/bold yellow] {outage_response.affected_household_ids}, "
            f"resilience {outage_response.community_resilience:.2f}"
        )
    if results:
        for recommendation in results[-1].recommendations:
            console.print(f"[yellow]- {recommendation}[/yellow]")

    return {
        "status": "success",
        "ticks": len(results),
        "trades": len(data.recent_trades),
        "network_stats": stats.model_dump(),
        "outage": outage_response.model_dump() if outage_response is not None else None,
    }


@app.command()
def status(
    config_file: str | None = typer.Option(None, "--config", "-c", help="Configuration file path"),
) -> dict[str, Any]:
    """Run one tick on the demo network and show the engine status."""
    return status_command(config_file=config_file)


def status_command(config_file: str | None = None) -> dict[str, Any]:
    """Execute the status command.

    Returns:
        The engine status as a dictionary
    """
    config = load_cli_config(config_file)
    engine = create_engine(config)
    try:
        engine.tick()
        current = engine.status()
    finally:
        engine.stop()

    stats = current.network_stats
    table = Table(title="SolarSense Network Status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Environment", config.environment)
    table.add_row("Running", str(current.is_running))
    table.add_row("Weather", str(current.current_weather))
    table.add_row("Households", f"{stats.active_households}/{stats.total_households} online")
    table.add_row("Generation", f"{stats.total_generation_kwh} kWh")
    table.add_row("Consumption", f"{stats.total_consumption_kwh} kWh")
    table.add_row("Stored energy", f"{stats.total_stored_energy_kwh} kWh")
    table.add_row("Trading velocity", f"{stats.trading_velocity_kwh} kWh")
    table.add_row("Carbon reduction", f"{stats.carbon_reduction_kg} kg")
    console.print(table)

    return current.model_dump(mode="json")


@app.command("weather")
def weather_cmd(
    condition: str = typer.Argument(..., help="Weather condition (sunny, partly-cloudy, cloudy, ...)"),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Configuration file path"),
) -> dict[str, Any]:
    """Override the weather, run a tick and show the optimizer's response."""
    return weather_command(condition=condition, config_file=config_file)


def weather_command(condition: str, config_file: str | None = None) -> dict[str, Any]:
    """Execute the weather command.

    Raises:
        ValueError: If ``condition`` is unknown
    """
    condition = parse_condition(condition)
    config = load_cli_config(config_file)
    engine = create_engine(config)
    try:
        observation = engine.trigger_weather_change(condition)
        result = engine.get_optimization_result()
    finally:
        engine.stop()

    console.print(f"[bold cyan]Weather set:[/bold cyan] {observation}")
    console.print(
        f"[dim]Trading pairs: {len(result.trading_pairs)}, "
        f"grid stability: {result.grid_stability_score:.2f}[/dim]"
    )
    for recommendation in result.recommendations:
        console.print(f"[yellow]- {recommendation}[/yellow]")

    return {
        "weather": observation.model_dump(mode="json"),
        "trading_pairs": len(result.trading_pairs),
        "grid_stability_score": result.grid_stability_score,
        "recommendations": list(result.recommendations),
    }


@app.command()
def version() -> str:
    """Show SolarSense version information."""
    return version_command()


def version_command() -> str:
    """Execute version command.

    Returns:
        Version string
    """
    from solarsense import __version__

    version_info = f"SolarSense v{__version__}"
    console.print(f"[bold cyan]{version_info}[/bold cyan]")
    console.print("[dim]Peer-to-peer solar energy trading simulation[/dim]")
    return version_info


def parse_condition(condition: str) -> str:
    """Normalize a weather condition name, raising ValueError if unknown."""
    normalized = condition.strip().lower().replace("_", "-")
    valid = [c.value for c in WeatherConditionType]
    if normalized not in valid:
        raise ValueError(f"Unknown weather condition '{condition}'. Choose from: {', '.join(valid)}")
    return normalized


# Main entry point for console script
def main() -> None:
    """Main entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
