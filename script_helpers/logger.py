"""
Logging setup for admin scripts.

Callers obtain a ``ScriptLogger`` handle from ``initialize_logging`` and write
leveled, component-tagged entries through it. Every entry is appended as one
line to the handle's log file and, unless suppressed, echoed to the console.
Both sinks are loguru handlers; records are routed by the values bound on
each call.
"""

from __future__ import annotations

import json
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import total_ordering
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger as _logger

from .defaults import DEFAULT_COMPONENT, DEFAULT_LOG_PATH
from .errors import LogIOError
from .file_locks import lock_for

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | "
    "<level>{message}</level>{extra[context_suffix]}"
)
# The line is rendered by LogEntry.format_line so the file carries the entry's own timestamp.
FILE_FORMAT = "{extra[line]}"

_CONFIGURE_LOCK = threading.Lock()
_LOG_INITIALISED = False
_FILE_SINKS: Dict[str, int] = {}


@total_ordering
class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity < other.severity

    @classmethod
    def parse(cls, value: Union["LogLevel", str]) -> "LogLevel":
        """Accept a level or its case-insensitive name."""
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise ValueError(f"Unknown log level: {value!r}")


# Same numbers loguru assigns to its built-in levels.
_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARNING: 30,
    LogLevel.ERROR: 40,
    LogLevel.CRITICAL: 50,
}


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: LogLevel
    component: str
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.level, LogLevel):
            raise ValueError("Log entries require a LogLevel.")
        if not isinstance(self.message, str) or not self.message:
            raise ValueError("Log entries require a non-empty message.")

    def format_line(self) -> str:
        """Render the single-line file representation of this entry."""
        line = f"{_format_timestamp(self.timestamp)} | {self.level.value: <8} | {self.component} | {self.message}"
        return line + _context_suffix(self.context)


class _FileAppender:
    """Loguru sink that opens, appends to and closes the log file on every record."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __call__(self, message: str) -> None:
        with lock_for(self.path):
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(str(message))


@dataclass
class ScriptLogger:
    """Handle bound to one log file and a default component tag."""

    path: Path
    component: str = DEFAULT_COMPONENT
    console_output: bool = True

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        _ensure_file_sink(self.path)

    def write_log(
        self,
        level: Union[LogLevel, str],
        message: str,
        *,
        component: Optional[str] = None,
        no_console: bool = False,
        context: Optional[Mapping[str, Any]] = None,
    ) -> LogEntry:
        """
        Append an entry to the log file and, unless suppressed, the console.

        When the file append fails the entry falls back to the console and a
        warning names the unreachable file. ``LogIOError`` is raised only if
        console output is also off for this call.
        """
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=LogLevel.parse(level),
            component=component or self.component,
            message=message,
            context=dict(context or {}),
        )
        to_console = self.console_output and not no_console
        _ensure_file_sink(self.path)
        bound = get_logger().bind(
            component=entry.component,
            log_path=str(self.path),
            console=to_console,
            line=entry.format_line(),
            context_suffix=_context_suffix(entry.context),
        )
        try:
            bound.log(entry.level.value, entry.message)
        except OSError as exc:
            if not to_console:
                raise LogIOError(f"Unable to append to log file {self.path}: {exc}") from exc
            get_logger().bind(component=entry.component).warning(
                "Log file {} is unavailable ({}); writing to console only.", self.path, exc
            )
        return entry

    def debug(self, message: str, **kwargs: Any) -> LogEntry:
        return self.write_log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> LogEntry:
        return self.write_log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> LogEntry:
        return self.write_log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> LogEntry:
        return self.write_log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> LogEntry:
        return self.write_log(LogLevel.CRITICAL, message, **kwargs)


def configure() -> None:
    """
    Configure loguru for the process.

    Replaces loguru's default handler with a console sink once; file sinks are
    added per log path by ``initialize_logging``.
    """
    global _LOG_INITIALISED
    with _CONFIGURE_LOCK:
        if _LOG_INITIALISED:
            return
        _logger.remove()
        _logger.configure(extra={"component": DEFAULT_COMPONENT, "context_suffix": ""})
        _logger.add(
            _console_sink,
            level="DEBUG",
            format=CONSOLE_FORMAT,
            filter=_console_enabled,
            colorize=_stderr_is_tty(),
            backtrace=True,
            diagnose=False,
        )
        _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger


def initialize_logging(
    path: Optional[Union[str, Path]] = None,
    component: Optional[str] = None,
    *,
    console_output: bool = True,
) -> ScriptLogger:
    """Create the log file if needed and return a handle writing to it."""
    target = Path(path) if path is not None else DEFAULT_LOG_PATH
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8"):
            pass
    except OSError as exc:
        raise LogIOError(f"Unable to create log file {target}: {exc}") from exc

    return ScriptLogger(
        path=target.resolve(),
        component=component or DEFAULT_COMPONENT,
        console_output=console_output,
    )


def initialize_logging_from_configuration(
    config: Mapping[str, Any],
    *,
    console_output: Optional[bool] = None,
) -> ScriptLogger:
    """Initialise logging from the ``log_path``/``component``/``console_output`` keys."""
    log_path = config.get("log_path")
    component = config.get("component")
    if console_output is None:
        console_output = config.get("console_output", True) is not False
    return initialize_logging(
        log_path if isinstance(log_path, str) and log_path.strip() else None,
        component if isinstance(component, str) and component.strip() else None,
        console_output=console_output,
    )


def shutdown_logging() -> None:
    """Remove every file sink registered by ``initialize_logging``."""
    with _CONFIGURE_LOCK:
        for handler_id in _FILE_SINKS.values():
            _logger.remove(handler_id)
        _FILE_SINKS.clear()


def _ensure_file_sink(path: Path) -> None:
    configure()
    key = str(path)
    with _CONFIGURE_LOCK:
        if key in _FILE_SINKS:
            return
        _FILE_SINKS[key] = _logger.add(
            _FileAppender(path),
            level="DEBUG",
            format=FILE_FORMAT,
            filter=lambda record: record["extra"].get("log_path") == key,
            catch=False,
        )


def _console_enabled(record) -> bool:
    return record["extra"].get("console", True) is not False


def _console_sink(message: str) -> None:
    """Write to the current stderr, which may be replaced after configuration."""
    stream = sys.stderr
    if stream is None:
        return
    stream.write(str(message))
    stream.flush()


def _stderr_is_tty() -> bool:
    isatty = getattr(sys.stderr, "isatty", None)
    return bool(isatty and isatty())


def _context_suffix(context: Mapping[str, Any]) -> str:
    if not context:
        return ""
    return " " + json.dumps(dict(context), sort_keys=True, default=str)


def _format_timestamp(value: datetime) -> str:
    """Return a UTC ISO-8601 timestamp with millisecond precision and trailing 'Z'."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
