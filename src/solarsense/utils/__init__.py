"""Utility modules for the SolarSense energy-trading engine.

This module provides domain-specific enumerations, type definitions and the
package logger used across the SolarSense peer-to-peer marketplace engine.
"""

from . import enums, types

__all__ = ["enums", "types"]
