"""
Default locations and identifiers for admin script state.
"""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "Admin Scripts"
DEFAULT_COMPONENT = "AdminScripts"

APP_DIR = Path(
    os.environ.get(
        "ADMIN_SCRIPTS_HOME",
        str(Path.home() / "AppData" / "Local" / APP_NAME),
    )
)
DEFAULT_CONFIG_PATH = Path(os.environ.get("ADMIN_SCRIPTS_CONFIG", str(APP_DIR / "config.json")))
DEFAULT_LOG_PATH = Path(os.environ.get("ADMIN_SCRIPTS_LOG", str(APP_DIR / "admin_scripts.log")))
