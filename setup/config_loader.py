# setup/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the application.

Handles loading settings from Pydantic model defaults, YAML files,
environment variables, and command-line arguments, applying a specific
order of precedence:
1. Pydantic Model Defaults
2. Environment Variables (WORKSTATION_ prefix, via Pydantic's BaseSettings)
3. YAML Configuration File (only when a path is given)
4. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .config_models import AppSettings

module_logger = logging.getLogger(__name__)


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates a dictionary `source` with values from another dictionary
    `overrides`. If a key exists in both dictionaries and its corresponding value
    is a dictionary, the function updates the nested dictionary recursively.
    Otherwise, it replaces or adds the value for the key in the `source` with the
    value from `overrides`. ``None`` values never replace an existing value.

    Parameters:
        source: Dict[str, Any]
            The dictionary to be updated. This dictionary gets modified in place.
        overrides: Dict[str, Any]
            The dictionary containing values to update or add to the `source`.

    Returns:
        Dict[str, Any]:
            The updated dictionary after applying all `overrides` to the input `source`.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
    return source


def _read_yaml_config(
    yaml_config_path: Path, logger_to_use: logging.Logger
) -> Dict[str, Any]:
    if not yaml_config_path.is_file():
        logger_to_use.warning(
            f"Configuration file '{yaml_config_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}
    try:
        with open(yaml_config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(
            f"Could not parse YAML config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}
    except IOError as e:
        logger_to_use.warning(
            f"Could not read config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        logger_to_use.warning(
            f"Config file '{yaml_config_path}' does not contain a valid YAML dictionary. Ignoring."
        )
        return {}
    logger_to_use.info(f"Loaded configuration from {yaml_config_path}")
    return yaml_data


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads application settings with the following precedence:
    1. Pydantic Model Defaults.
    2. Environment Variables (Pydantic BaseSettings loads these).
    3. Values from the YAML configuration file, when one is given.
    4. Command-Line Arguments (highest precedence, overrides all else).

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: Path to the YAML configuration file. When omitted the
            ``config`` attribute of ``cli_args`` is used, if present.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        SystemExit: If the merged values fail validation.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        settings_after_env_and_defaults = AppSettings()
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e
    current_values_dict = settings_after_env_and_defaults.model_dump(
        exclude_defaults=False
    )

    if config_file_path is None and cli_args is not None:
        config_file_path = getattr(cli_args, "config", None)

    if config_file_path:
        yaml_data = _read_yaml_config(Path(config_file_path), logger_to_use)
        current_values_dict = _deep_update(current_values_dict, yaml_data)

    if cli_args:
        cli_arg_dict = vars(cli_args)
        mapped_cli_values: Dict[str, Any] = {}

        for cli_key, cli_value in cli_arg_dict.items():
            if cli_value is None:
                continue

            if cli_key == "auto" and cli_value:
                mapped_cli_values["auto_mode"] = True
            elif cli_key == "no_restart" and cli_value:
                mapped_cli_values["restart_enabled"] = False
            elif cli_key == "user":
                mapped_cli_values["target_user"] = cli_value

        current_values_dict = _deep_update(
            current_values_dict, mapped_cli_values
        )

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    return final_settings
