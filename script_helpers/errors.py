"""
Exception hierarchy shared by the admin script helpers.
"""

from __future__ import annotations


class ScriptHelperError(Exception):
    """Base class for failures raised by the helper modules."""


class ConfigIOError(ScriptHelperError):
    """Raised when the configuration file cannot be read, written or parsed."""


class LogIOError(ScriptHelperError):
    """Raised when the log file cannot be created or appended to."""


class OperationFailedError(ScriptHelperError, RuntimeError):
    """
    Raised once a retried operation has exhausted its attempts.

    The original exception is kept on ``cause`` and chained as ``__cause__``.
    """

    def __init__(self, operation_name: str, attempts: int, cause: BaseException) -> None:
        self.operation_name = operation_name
        self.attempts = attempts
        self.cause = cause
        noun = "attempt" if attempts == 1 else "attempts"
        super().__init__(f"{operation_name} failed after {attempts} {noun}: {cause}")
