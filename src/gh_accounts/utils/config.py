"""
Configuration utilities for loading gh-accounts settings from YAML.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..errors import SettingsError
from ..models import Settings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GH_ACCOUNTS_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/gh-accounts/config.yaml")


def resolve_config_path(config_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """
    Decide which settings file to read.

    Args:
        config_path: Explicit path from the command line, if any

    Returns:
        Path to read, or None when only the built-in defaults apply

    Raises:
        SettingsError: If an explicitly requested file does not exist
    """
    explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise SettingsError(f"Settings file not found at path: {path}")
        return path

    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.is_file() else None


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build the Settings used by every command.

    Args:
        config_path: Optional YAML file overriding the defaults

    Returns:
        Settings: Validated settings

    Raises:
        SettingsError: If the file is missing, malformed, or has unknown keys
    """
    path = resolve_config_path(config_path)
    if path is None:
        return Settings()

    try:
        with open(path, "r") as file:
            data = yaml.safe_load(file)
    except yaml.YAMLError as e:
        raise SettingsError(f"Error parsing YAML file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping at the top level")

    logger.debug("Loaded settings from %s", path)
    return settings_from_mapping(data, source=str(path))


def settings_from_mapping(data: Dict[str, Any], source: str = "<mapping>") -> Settings:
    """Validate a plain mapping into Settings."""
    try:
        return Settings(**data)
    except PydanticValidationError as e:
        raise SettingsError(f"Invalid settings in {source}: {e}") from e
