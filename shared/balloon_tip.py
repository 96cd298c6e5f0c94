"""
Balloon tip payload shown by the tray notifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

# Windows truncates NOTIFYICONDATA szInfoTitle/szInfo at these lengths.
MAX_TITLE_LENGTH = 63
MAX_MESSAGE_LENGTH = 255
DEFAULT_TIMEOUT_MS = 5000


class BalloonTipError(ValueError):
    """Raised when a balloon tip is missing required data or is malformed."""


class IconKind(Enum):
    NONE = "none"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def parse(cls, value: Union["IconKind", str]) -> "IconKind":
        if isinstance(value, IconKind):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        choices = ", ".join(kind.value for kind in cls)
        raise BalloonTipError(f"icon must be one of: {choices}.")


@dataclass(frozen=True)
class BalloonTip:
    title: str
    message: str
    icon_kind: IconKind = IconKind.INFO
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        _require_string(self.title, field="title", max_length=MAX_TITLE_LENGTH)
        _require_string(self.message, field="message", max_length=MAX_MESSAGE_LENGTH)
        if not isinstance(self.icon_kind, IconKind):
            raise BalloonTipError("icon_kind must be an IconKind.")
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int) or self.timeout_ms <= 0:
            raise BalloonTipError("timeout_ms must be a positive integer.")

    @classmethod
    def create(
        cls,
        title: Any,
        message: Any,
        icon_kind: Union[IconKind, str] = IconKind.INFO,
        timeout_ms: Any = DEFAULT_TIMEOUT_MS,
    ) -> "BalloonTip":
        """Normalise loosely typed input (e.g. from the command line) into a tip."""
        if isinstance(timeout_ms, str):
            try:
                timeout_ms = int(timeout_ms.strip())
            except ValueError as exc:
                raise BalloonTipError("timeout_ms must be a positive integer.") from exc
        return cls(
            title=title.strip() if isinstance(title, str) else title,
            message=message.strip() if isinstance(message, str) else message,
            icon_kind=IconKind.parse(icon_kind),
            timeout_ms=timeout_ms,
        )


def _require_string(value: Any, *, field: str, max_length: int) -> None:
    if not isinstance(value, str):
        raise BalloonTipError(f"{field} must be a string.")
    if value.strip() == "":
        raise BalloonTipError(f"{field} must be a non-empty string.")
    if len(value) > max_length:
        raise BalloonTipError(f"{field} must be at most {max_length} characters.")
