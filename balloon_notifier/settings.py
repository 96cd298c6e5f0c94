"""
Configuration-backed settings for the balloon tip notifier.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from script_helpers.config_store import ConfigurationStore
from script_helpers.defaults import APP_NAME
from script_helpers.error_handling import RetryPolicy
from script_helpers.errors import ConfigIOError
from script_helpers.logger import get_logger
from shared.balloon_tip import DEFAULT_TIMEOUT_MS, MAX_TITLE_LENGTH, BalloonTipError, IconKind

_LOGGER = get_logger()

_MIN_TIMEOUT_MS = 1000
_MAX_TIMEOUT_MS = 30000


@dataclass(eq=True)
class NotifierSettings:
    title: str = APP_NAME
    icon_kind: IconKind = IconKind.INFO
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)


class NotifierSettingsManager:
    """Loads notifier settings from the configuration store and clamps invalid data."""

    def __init__(self, *, store: Optional[ConfigurationStore] = None) -> None:
        self.store = store or ConfigurationStore()

    def read_settings(self) -> NotifierSettings:
        entries = self._load()
        if not entries:
            return NotifierSettings()

        return NotifierSettings(
            title=self._read_title(entries),
            icon_kind=self._read_icon(entries),
            timeout_ms=self._read_timeout(entries),
            retry_policy=RetryPolicy.from_configuration(entries),
        )

    def _load(self) -> Dict[str, Any]:
        try:
            return self.store.load()
        except ConfigIOError as exc:
            _LOGGER.warning("Notifier configuration unreadable; using defaults: {}", exc)
            return {}

    def _read_title(self, entries: Dict[str, Any]) -> str:
        raw = entries.get("balloon_title")
        if not isinstance(raw, str) or raw.strip() == "":
            return APP_NAME
        return raw.strip()[:MAX_TITLE_LENGTH]

    def _read_icon(self, entries: Dict[str, Any]) -> IconKind:
        raw = entries.get("balloon_icon")
        if raw is None:
            return IconKind.INFO
        try:
            return IconKind.parse(raw)
        except BalloonTipError:
            _LOGGER.warning("Unsupported balloon icon {!r} in configuration. Using 'info'.", raw)
            return IconKind.INFO

    def _read_timeout(self, entries: Dict[str, Any]) -> int:
        raw = entries.get("balloon_timeout_ms")
        if raw is None:
            return DEFAULT_TIMEOUT_MS
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
            _LOGGER.warning("Configuration value balloon_timeout_ms has unexpected type {}.", type(raw).__name__)
            return DEFAULT_TIMEOUT_MS
        return clamp_timeout_ms(int(raw), source="configuration")


def clamp_timeout_ms(value: int, *, source: str) -> int:
    """Clamp a balloon timeout to 1-30 seconds, warning when it was out of range."""
    if value < _MIN_TIMEOUT_MS or value > _MAX_TIMEOUT_MS:
        _LOGGER.warning(
            "Invalid balloon timeout {} found in {}. Clamping to safe bounds.",
            value,
            source,
        )
    return max(_MIN_TIMEOUT_MS, min(_MAX_TIMEOUT_MS, value))
