"""
File-backed key/value configuration for admin scripts.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from shared.config_values import ConfigValue, ConfigValueError, validate_config_value, validate_entries, validate_key

from .defaults import APP_NAME, DEFAULT_COMPONENT, DEFAULT_CONFIG_PATH, DEFAULT_LOG_PATH
from .errors import ConfigIOError
from .file_locks import lock_for
from .logger import get_logger

_LOGGER = get_logger()
_ENCODING = "utf-8"


def get_default_configuration() -> Dict[str, ConfigValue]:
    """Return a fresh copy of the baseline configuration."""
    return {
        "log_path": str(DEFAULT_LOG_PATH),
        "component": DEFAULT_COMPONENT,
        "console_output": True,
        "max_retries": 3,
        "continue_on_error": False,
        "retry_delay_seconds": 0.0,
        "balloon_title": APP_NAME,
        "balloon_icon": "info",
        "balloon_timeout_ms": 5000,
    }


@dataclass
class ConfigurationStore:
    """
    Thin wrapper over a JSON file holding a flat mapping of settings.

    Nothing is cached: every call reads the file, and every write replaces it
    as a whole through a temporary file in the same directory.
    """

    path: Path = field(default_factory=lambda: DEFAULT_CONFIG_PATH)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def initialize(self, defaults: Optional[Mapping[str, Any]] = None) -> Dict[str, ConfigValue]:
        """Write ``defaults`` when the file is absent, otherwise return what is on disk."""
        with lock_for(self.path):
            if self._exists():
                return self._read()

            entries = validate_entries(get_default_configuration() if defaults is None else defaults)
            self._write(entries)
            _LOGGER.debug("Initialised configuration at {} with {} entries.", self.path, len(entries))
            return entries

    def load(self) -> Dict[str, ConfigValue]:
        with lock_for(self.path):
            if not self._exists():
                return {}
            return self._read()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for ``key``, or ``default``. Never raises."""
        try:
            entries = self.load()
        except ConfigIOError as exc:
            _LOGGER.warning("Configuration {} is unreadable; using default for '{}': {}", self.path, key, exc)
            return default
        return entries.get(key, default)

    def set(self, key: str, value: ConfigValue) -> Dict[str, ConfigValue]:
        """Upsert ``key`` and rewrite the whole file. Returns the persisted mapping."""
        validate_key(key)
        validate_config_value(value, key=key)
        with lock_for(self.path):
            entries = self._read() if self._exists() else {}
            entries[key] = value
            self._write(entries)
        return entries

    def _read(self) -> Dict[str, ConfigValue]:
        try:
            contents = self.path.read_text(encoding=_ENCODING)
        except OSError as exc:
            raise ConfigIOError(f"Unable to read configuration: {self.path}") from exc

        try:
            raw = json.loads(contents)
        except json.JSONDecodeError as exc:
            raise ConfigIOError(f"Configuration is not valid JSON: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigIOError(f"Configuration root must be a JSON object: {self.path}")
        try:
            return validate_entries(raw)
        except ConfigValueError as exc:
            raise ConfigIOError(f"Configuration {self.path} holds an invalid entry: {exc}") from exc

    def _exists(self) -> bool:
        try:
            return self.path.exists()
        except OSError as exc:
            raise ConfigIOError(f"Unable to access configuration: {self.path}") from exc

    def _write(self, entries: Mapping[str, ConfigValue]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle, temp_name = tempfile.mkstemp(prefix=".config_", suffix=".tmp", dir=str(self.path.parent))
            try:
                with os.fdopen(handle, "w", encoding=_ENCODING) as stream:
                    json.dump(entries, stream, indent=2, sort_keys=True, allow_nan=False)
                    stream.write("\n")
                os.replace(temp_name, self.path)
            except BaseException:
                with suppress(OSError):
                    os.unlink(temp_name)
                raise
        except (OSError, ValueError) as exc:
            raise ConfigIOError(f"Unable to write configuration: {self.path}") from exc


def initialize_configuration(
    path: Optional[Union[str, Path]] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> Dict[str, ConfigValue]:
    return ConfigurationStore(_resolve(path)).initialize(defaults)


def get_config_value(key: str, default: Any = None, *, path: Optional[Union[str, Path]] = None) -> Any:
    return ConfigurationStore(_resolve(path)).get(key, default)


def set_config_value(
    key: str,
    value: ConfigValue,
    path: Optional[Union[str, Path]] = None,
) -> Dict[str, ConfigValue]:
    return ConfigurationStore(_resolve(path)).set(key, value)


def _resolve(path: Optional[Union[str, Path]]) -> Path:
    return Path(path) if path is not None else DEFAULT_CONFIG_PATH
