#!/usr/bin/env python3
"""Main CLI entry point for the SolarSense energy-trading engine.

Usage:
    solarsense simulate --ticks 6
    solarsense status
    solarsense version
"""

import sys

from solarsense.cli.main import create_cli_app


def main():
    """Main CLI entry point."""
    try:
        app = create_cli_app()
        app()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
