"""
Deprecated system tray balloon tip notifier built on the script helpers.
"""

__all__ = [
    "main",
    "settings",
    "tray_notifier",
]
