"""CLI module for the SolarSense energy-trading engine.

The CLI enables:
- Running the simulation for a number of ticks
- Inspecting network status
- Overriding the weather and viewing the optimizer's response
"""

from .main import app, create_cli_app

__all__ = ["app", "create_cli_app"]
