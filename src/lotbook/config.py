"""
Configuration loading and management for the portfolio ledger.

This module handles loading application settings from YAML files,
environment overrides, and validation of configuration parameters.
"""

import os
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import yaml

from lotbook.models import AppConfig


# Environment variable that overrides the configured state file
STATE_FILE_ENV_VAR = "LOTBOOK_STATE_FILE"

_KNOWN_FIELDS = {"state_file", "output_dir", "default_currency", "undo_limit", "color"}


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def load_app_config(config_path: str | Path) -> AppConfig:
    """
    Load application configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        AppConfig object with validated settings

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    return _apply_env_overrides(_parse_app_config(raw_config))


def load_app_config_or_default(config_path: Optional[str | Path] = None) -> AppConfig:
    """
    Load configuration if a path is given, otherwise use defaults.

    Environment overrides apply in both cases.

    Args:
        config_path: Optional path to the YAML configuration file

    Returns:
        AppConfig
    """
    if config_path is None:
        return _apply_env_overrides(AppConfig())
    return load_app_config(config_path)


def _parse_app_config(raw: dict[str, Any]) -> AppConfig:
    """
    Parse and validate raw configuration dictionary into AppConfig.

    Args:
        raw: Dictionary loaded from YAML

    Returns:
        Validated AppConfig

    Raises:
        ConfigurationError: If fields are unknown or invalid
    """
    unknown = sorted(set(raw) - _KNOWN_FIELDS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration fields: {unknown}")

    defaults = AppConfig()

    state_file = str(raw.get("state_file", defaults.state_file)).strip()
    if not state_file:
        raise ConfigurationError("state_file cannot be empty")

    output_dir = str(raw.get("output_dir", defaults.output_dir))

    default_currency = str(raw.get("default_currency", defaults.default_currency)).strip()
    if not default_currency:
        raise ConfigurationError("default_currency cannot be empty")

    undo_limit = raw.get("undo_limit", defaults.undo_limit)
    if isinstance(undo_limit, bool) or not isinstance(undo_limit, int):
        raise ConfigurationError(f"undo_limit must be an integer, got {undo_limit!r}")
    if undo_limit < 0:
        raise ConfigurationError(f"undo_limit must be >= 0, got {undo_limit}")

    color = raw.get("color", defaults.color)
    if not isinstance(color, bool):
        raise ConfigurationError(f"color must be true or false, got {color!r}")

    return AppConfig(
        state_file=state_file,
        output_dir=output_dir,
        default_currency=default_currency.upper(),
        undo_limit=undo_limit,
        color=color,
    )


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Environment variables take priority over file settings."""
    state_file = os.environ.get(STATE_FILE_ENV_VAR)
    if state_file:
        config.state_file = state_file
    return config


def _parse_date(value: Any, field_name: str) -> date:
    """
    Parse a date value from various formats.

    Args:
        value: The value to parse (string or date object)
        field_name: Name of the field for error messages

    Returns:
        Parsed date object

    Raises:
        ConfigurationError: If the date cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass

    raise ConfigurationError(
        f"Invalid date format for {field_name}: {value}. Expected YYYY-MM-DD"
    )


def _parse_decimal(
    value: Any,
    field_name: str,
    min_val: Decimal | None = None,
    max_val: Decimal | None = None,
) -> Decimal:
    """
    Parse a decimal value with optional range validation.

    Args:
        value: The value to parse
        field_name: Name of the field for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Returns:
        Parsed Decimal

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    try:
        decimal_value = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if not decimal_value.is_finite():
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if min_val is not None and decimal_value < min_val:
        raise ConfigurationError(
            f"{field_name} must be >= {min_val}, got {decimal_value}"
        )

    if max_val is not None and decimal_value > max_val:
        raise ConfigurationError(
            f"{field_name} must be <= {max_val}, got {decimal_value}"
        )

    return decimal_value


def write_config(config: AppConfig, output_path: str | Path) -> None:
    """
    Write an AppConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        "state_file": config.state_file,
        "output_dir": config.output_dir,
        "default_currency": config.default_currency,
        "undo_limit": config.undo_limit,
        "color": config.color,
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
