"""
Bounded retry around a single unit of work.

``max_retries`` counts total attempts, so 0 and 1 both mean a single call.
Between attempts an optional exponential backoff is applied, capped at
``max_delay_seconds``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, TypeVar, Union

from .errors import OperationFailedError
from .logger import LogLevel, ScriptLogger, get_logger

T = TypeVar("T")

DEFAULT_MAX_DELAY_SECONDS = 8.0
_MAX_BACKOFF_EXPONENT = 62


class _NoResult:
    """Falsy singleton returned when a final failure is suppressed."""

    _instance: Optional["_NoResult"] = None

    def __new__(cls) -> "_NoResult":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_RESULT"

    def __reduce__(self):
        return (_NoResult, ())


NO_RESULT = _NoResult()


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 1
    continue_on_error: bool = False
    retry_delay_seconds: float = 0.0
    max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS

    def __post_init__(self) -> None:
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise ValueError("max_retries must be an integer")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_delay_seconds < 0:
            raise ValueError("retry_delay_seconds must be >= 0")
        if self.max_delay_seconds < 0:
            raise ValueError("max_delay_seconds must be >= 0")

    @property
    def attempts(self) -> int:
        return max(1, self.max_retries)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` before the next one."""
        if self.retry_delay_seconds <= 0:
            return 0.0
        # 2 ** 1024 does not fit in a float.
        exponent = min(max(attempt - 1, 0), _MAX_BACKOFF_EXPONENT)
        return min(self.retry_delay_seconds * (2 ** exponent), self.max_delay_seconds)

    @classmethod
    def from_configuration(cls, config: Mapping[str, Any]) -> "RetryPolicy":
        """Build a policy from configuration keys, ignoring missing or invalid values."""
        return cls(
            max_retries=_coerce_count(config.get("max_retries"), default=cls.max_retries),
            continue_on_error=config.get("continue_on_error") is True,
            retry_delay_seconds=_coerce_delay(config.get("retry_delay_seconds"), default=cls.retry_delay_seconds),
        )


def invoke_with_error_handling(
    work: Callable[[], T],
    operation_name: str,
    max_retries: int = 1,
    continue_on_error: bool = False,
    *,
    logger: Optional[ScriptLogger] = None,
    retry_delay_seconds: float = 0.0,
) -> Union[T, _NoResult]:
    """
    Run ``work`` and retry it on failure up to ``max_retries`` total attempts.

    Returns the result of the first successful call unchanged. Once attempts
    are exhausted either returns ``NO_RESULT`` (``continue_on_error``) or
    raises ``OperationFailedError`` chained from the last failure.
    """
    policy = RetryPolicy(
        max_retries=max_retries,
        continue_on_error=continue_on_error,
        retry_delay_seconds=retry_delay_seconds,
    )
    return run_with_policy(policy, work, operation_name, logger=logger)


def run_with_policy(
    policy: RetryPolicy,
    work: Callable[[], T],
    operation_name: str,
    *,
    logger: Optional[ScriptLogger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Union[T, _NoResult]:
    attempts = policy.attempts
    attempt = 1
    while True:
        try:
            return work()
        except Exception as exc:
            cause = f"{type(exc).__name__}: {exc}"
            _record(
                logger,
                LogLevel.WARNING,
                f"{operation_name} attempt {attempt}/{attempts} failed: {cause}",
                operation_name=operation_name,
                attempt=attempt,
            )
            if attempt < attempts:
                delay = policy.delay_for(attempt)
                if delay > 0:
                    sleep(delay)
                attempt += 1
                continue

            if policy.continue_on_error:
                _record(
                    logger,
                    LogLevel.ERROR,
                    f"{operation_name} failed after {attempt} attempt(s); continuing: {cause}",
                    operation_name=operation_name,
                    attempt=attempt,
                )
                return NO_RESULT

            _record(
                logger,
                LogLevel.ERROR,
                f"{operation_name} failed after {attempt} attempt(s): {cause}",
                operation_name=operation_name,
                attempt=attempt,
            )
            raise OperationFailedError(operation_name, attempt, exc) from exc


def _record(
    logger: Optional[ScriptLogger],
    level: LogLevel,
    message: str,
    *,
    operation_name: str,
    attempt: int,
) -> None:
    if logger is not None:
        logger.write_log(level, message, context={"operation": operation_name, "attempt": attempt})
        return
    get_logger().bind(component=operation_name).log(level.value, "{}", message)


def _coerce_count(value: Any, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        count = int(value)
    except (TypeError, ValueError):
        return default
    if count < 0:
        return default
    return count


def _coerce_delay(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        delay = float(value)
    except (TypeError, ValueError):
        return default
    if delay < 0 or delay != delay:
        return default
    return delay
