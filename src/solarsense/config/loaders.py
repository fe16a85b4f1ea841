"""Configuration loaders for the SolarSense energy-trading engine.

This module provides configuration loading functionality using YAML files
with Pydantic validation for runtime settings.
"""

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from solarsense.exceptions import ConfigurationError

from .schema import SolarSenseConfig

ENV_PREFIX = "SOLARSENSE_"
ENV_NESTED_DELIMITER = "__"


class ConfigLoader(ABC):
    """Abstract base class for configuration loaders."""

    @abstractmethod
    def load_config(self, config_path: str | Path) -> SolarSenseConfig:
        """Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValidationError: If the config validation fails
        """
        pass

    @abstractmethod
    def load_config_from_dict(self, config_dict: dict[str, Any]) -> SolarSenseConfig:
        """Load configuration from a dictionary.

        Args:
            config_dict: Configuration data as dictionary

        Returns:
            Loaded and validated configuration

        Raises:
            ValidationError: If the config validation fails
        """
        pass


class YamlConfigLoader(ConfigLoader):
    """YAML configuration loader implementation."""

    def __init__(self, safe_load: bool = True):
        """Initialize YAML configuration loader.

        Args:
            safe_load: Whether to use safe YAML loading (default: True)
        """
        self.safe_load = safe_load

    def load_config(self, config_path: str | Path) -> SolarSenseConfig:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigurationError: If the file is not a YAML mapping or cannot be parsed
            ValidationError: If the config validation fails
        """
        return self.load_config_from_dict(self._read_yaml(config_path))

    def load_config_from_dict(self, config_dict: dict[str, Any]) -> SolarSenseConfig:
        """Load configuration from a dictionary.

        Args:
            config_dict: Configuration data as dictionary

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If the data is not a dictionary
            ValidationError: If the config validation fails
        """
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration data must be a dictionary")

        return SolarSenseConfig(**config_dict)

    def merge_with_defaults(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Merge configuration with default values.

        Args:
            config_dict: User-provided configuration dictionary

        Returns:
            Configuration dictionary merged with defaults
        """
        default_dict = SolarSenseConfig().model_dump(mode="json")
        return self._deep_merge(default_dict, config_dict)

    def _deep_merge(self, base: dict[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries.

        Args:
            base: Base dictionary
            update: Dictionary to merge into base

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load_config_with_env_override(
        self, config_path: str | Path | None = None, env_prefix: str = ENV_PREFIX
    ) -> SolarSenseConfig:
        """Load configuration with environment variable overrides.

        Variables are named ``<prefix><SECTION>__<FIELD>`` for nested fields
        (e.g. ``SOLARSENSE_SIMULATION__TICK_INTERVAL_SECONDS=5``) or
        ``<prefix><FIELD>`` for top-level fields. Values are coerced by the
        schema validators.

        Args:
            config_path: Optional path to the YAML configuration file
            env_prefix: Environment variable prefix (default: "SOLARSENSE_")

        Returns:
            Loaded configuration with environment overrides

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValidationError: If the config validation fails
        """
        config_dict = self._read_yaml(config_path) if config_path is not None else {}
        merged = self.merge_with_defaults(config_dict)

        overrides: dict[str, Any] = {}
        for key, value in os.environ.items():
            if not key.startswith(env_prefix):
                continue
            path = key[len(env_prefix) :].lower().split(ENV_NESTED_DELIMITER)
            if path[0] not in merged:
                continue
            cursor = overrides
            for part in path[:-1]:
                cursor = cursor.setdefault(part, {})
            cursor[path[-1]] = value

        return SolarSenseConfig(**self._deep_merge(merged, overrides))

    def save_config(self, config: SolarSenseConfig, config_path: str | Path) -> None:
        """Save configuration to a YAML file.

        Args:
            config: Configuration to save
            config_path: Path to save the configuration file

        Raises:
            ConfigurationError: If saving fails
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration to {config_path}: {e}") from e

    def generate_example_config(self, config_path: str | Path) -> None:
        """Generate an example configuration file.

        Args:
            config_path: Path to save the example configuration file
        """
        self.save_config(SolarSenseConfig(), config_path)

    def _read_yaml(self, config_path: str | Path) -> dict[str, Any]:
        """Read a YAML mapping from disk."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if not config_path.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                if self.safe_load:
                    config_dict = yaml.safe_load(f)
                else:
                    config_dict = yaml.load(f, Loader=yaml.FullLoader)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}") from e

        if config_dict is None:
            raise ConfigurationError(f"Configuration file {config_path} is empty")

        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a YAML mapping")

        return config_dict


def load_config_from_yaml(config_path: str | Path) -> SolarSenseConfig:
    """Convenience function to load configuration from YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Loaded and validated configuration
    """
    return YamlConfigLoader().load_config(config_path)


def load_config_from_dict(config_dict: dict[str, Any]) -> SolarSenseConfig:
    """Convenience function to load configuration from dictionary.

    Args:
        config_dict: Configuration data as dictionary

    Returns:
        Loaded and validated configuration
    """
    return YamlConfigLoader().load_config_from_dict(config_dict)


__all__ = [
    "ConfigLoader",
    "YamlConfigLoader",
    "load_config_from_dict",
    "load_config_from_yaml",
]
