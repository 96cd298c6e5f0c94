"""
Pytest fixtures shared by the helper and notifier tests.
"""

from pathlib import Path

import pytest

from script_helpers.logger import initialize_logging, shutdown_logging


@pytest.fixture(autouse=True)
def _reset_file_sinks():
    """Drop loguru file sinks registered during a test."""
    yield
    shutdown_logging()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "settings" / "config.json"


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "scripts.log"


@pytest.fixture
def script_logger(log_path: Path):
    return initialize_logging(log_path, "TestComponent", console_output=False)
