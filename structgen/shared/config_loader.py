"""Configuration file loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Final

import yaml

from .errors import ConfigError

# Recognised keys and the types their values must have.
CONFIG_KEYS: Final[dict[str, type]] = {
    "datasource": str,
    "database": str,
    "table": str,
    "dir": str,
    "model": str,
    "nullable_types": bool,
    "json_tag_source": str,
    "pk_not_null_from_column": bool,
    "error_policy": str,
    "format": bool,
    "dialect": str,
}


def load_config(config_path: Path) -> dict[str, Any]:
    """Load and validate a generator configuration from a YAML file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        The validated configuration mapping. An empty file yields ``{}``.

    Raises:
        ConfigError: If the file cannot be read or parsed, or holds
            unknown keys or values of the wrong type.
    """
    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e}", str(config_path)) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", str(config_path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping", str(config_path))

    for key, value in data.items():
        expected = CONFIG_KEYS.get(key)
        if expected is None:
            raise ConfigError("unknown key", str(config_path), key=str(key))
        if not isinstance(value, expected):
            raise ConfigError(
                f"expected {expected.__name__}, got {type(value).__name__}",
                str(config_path),
                key=key,
            )

    return data
