"""
Value validation for the JSON-backed configuration store.

Only JSON-native values are accepted so that writing a mapping and reading it
back yields an equal mapping.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Union

ConfigValue = Union[str, int, float, bool, None, List["ConfigValue"], Dict[str, "ConfigValue"]]


class ConfigValueError(ValueError):
    """Raised when a value cannot be stored in the configuration file."""


def validate_config_value(value: Any, *, key: str = "value") -> None:
    """Raise ConfigValueError unless ``value`` is a supported configuration value."""
    if value is None or isinstance(value, (str, bool, int)):
        return

    if isinstance(value, float):
        if not math.isfinite(value):
            raise ConfigValueError(f"{key} must be a finite number.")
        return

    if isinstance(value, list):
        for index, item in enumerate(value):
            validate_config_value(item, key=f"{key}[{index}]")
        return

    if isinstance(value, dict):
        for name, item in value.items():
            if not isinstance(name, str):
                raise ConfigValueError(f"{key} keys must be strings.")
            validate_config_value(item, key=f"{key}.{name}")
        return

    raise ConfigValueError(
        f"{key} has unsupported type {type(value).__name__}; "
        "expected a string, number, boolean, list or mapping."
    )


def validate_entries(entries: Any) -> Dict[str, ConfigValue]:
    """Validate a whole configuration mapping and return it as a plain dict."""
    if not isinstance(entries, Mapping):
        raise ConfigValueError("Configuration entries must be a mapping.")

    validated: Dict[str, ConfigValue] = {}
    for key, value in entries.items():
        validate_key(key)
        validate_config_value(value, key=key)
        validated[key] = value
    return validated


def validate_key(key: Any) -> None:
    if not isinstance(key, str) or key.strip() == "":
        raise ConfigValueError("Configuration keys must be non-empty strings.")
