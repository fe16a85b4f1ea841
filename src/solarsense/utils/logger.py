"""Logging utilities for the SolarSense energy-trading engine.

This module provides the package logger and a helper that applies a
``LoggingConfig`` to it (level, console output and a rotating log file).
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from solarsense.config.schema import LoggingConfig

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Create a default logger
logger = logging.getLogger("solarsense")

# Configure logging if not already configured
if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    logger.addHandler(console_handler)
    logger.setLevel(logging.INFO)


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Apply a logging configuration to the package logger.

    Existing handlers are replaced so repeated calls do not duplicate output.

    Args:
        config: Logging configuration section

    Returns:
        The configured package logger
    """
    level = getattr(logging, str(getattr(config.level, "value", config.level)))
    formatter = logging.Formatter(config.format)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.file_path:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    return logger


__all__ = ["logger", "configure_logging", "DEFAULT_FORMAT"]
