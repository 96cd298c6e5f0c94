"""
Legacy system tray balloon tip presenter.

Balloon tips are superseded by toast notifications; this presenter is kept
for scripts that still target the tray area.
"""

from __future__ import annotations

import warnings
from typing import Callable, Optional

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication, QStyle, QSystemTrayIcon

from script_helpers.logger import ScriptLogger
from shared.balloon_tip import BalloonTip, IconKind

_MESSAGE_ICONS = {
    IconKind.NONE: QSystemTrayIcon.MessageIcon.NoIcon,
    IconKind.INFO: QSystemTrayIcon.MessageIcon.Information,
    IconKind.WARNING: QSystemTrayIcon.MessageIcon.Warning,
    IconKind.ERROR: QSystemTrayIcon.MessageIcon.Critical,
}

_TRAY_PIXMAPS = {
    IconKind.NONE: QStyle.StandardPixmap.SP_ComputerIcon,
    IconKind.INFO: QStyle.StandardPixmap.SP_MessageBoxInformation,
    IconKind.WARNING: QStyle.StandardPixmap.SP_MessageBoxWarning,
    IconKind.ERROR: QStyle.StandardPixmap.SP_MessageBoxCritical,
}


class TrayUnavailableError(RuntimeError):
    """Raised when the desktop session exposes no system tray."""


class TrayBalloonNotifier:
    """Shows a balloon tip from a temporary tray icon and waits for it to expire."""

    def __init__(
        self,
        *,
        logger: Optional[ScriptLogger] = None,
        app=None,
        tray_factory: Optional[Callable[[], QSystemTrayIcon]] = None,
        tray_available: Optional[Callable[[], bool]] = None,
        wait: Optional[Callable[[object, int], None]] = None,
    ) -> None:
        self._logger = logger
        self._app = app
        self._tray_factory = tray_factory or QSystemTrayIcon
        self._tray_available = tray_available or QSystemTrayIcon.isSystemTrayAvailable
        self._wait = wait or _run_event_loop

    def show(self, tip: BalloonTip) -> None:
        warnings.warn(
            "Balloon tips are deprecated; use toast notifications where available.",
            DeprecationWarning,
            stacklevel=2,
        )
        app = self._ensure_app()
        if not self._tray_available():
            raise TrayUnavailableError("No system tray is available in this session.")

        tray = self._tray_factory()
        tray.setIcon(app.style().standardIcon(_TRAY_PIXMAPS[tip.icon_kind]))
        tray.setToolTip(tip.title)
        tray.show()
        try:
            tray.showMessage(tip.title, tip.message, _MESSAGE_ICONS[tip.icon_kind], tip.timeout_ms)
            if self._logger is not None:
                self._logger.info(
                    f"Balloon tip shown: {tip.title}",
                    context={"icon": tip.icon_kind.value, "timeout_ms": tip.timeout_ms},
                )
            self._wait(app, tip.timeout_ms)
        finally:
            tray.hide()

    def _ensure_app(self):
        if self._app is None:
            self._app = QApplication.instance() or QApplication([])
        return self._app


def _run_event_loop(app, timeout_ms: int) -> None:
    """Spin the Qt event loop until the balloon has had time to expire."""
    QTimer.singleShot(timeout_ms, app.quit)
    app.exec()
