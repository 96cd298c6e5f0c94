"""
Configuration, logging and retry helpers shared by admin scripts.
"""

from .config_store import (  # noqa: F401
    ConfigurationStore,
    get_config_value,
    get_default_configuration,
    initialize_configuration,
    set_config_value,
)
from .error_handling import NO_RESULT, RetryPolicy, invoke_with_error_handling, run_with_policy  # noqa: F401
from .errors import ConfigIOError, LogIOError, OperationFailedError, ScriptHelperError  # noqa: F401
from .logger import LogEntry, LogLevel, ScriptLogger, get_logger, initialize_logging  # noqa: F401
