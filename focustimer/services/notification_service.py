"""
Notification Service - fire-and-forget desktop notifications.

The tray application passes its QSystemTrayIcon; without one (tests, headless
runs) notifications are only logged.
"""

import logging
from typing import Optional

from PySide6.QtWidgets import QSystemTrayIcon

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, tray_icon: Optional[QSystemTrayIcon] = None, enabled: bool = True,
                 duration_ms: int = 10000):
        self.tray_icon = tray_icon
        self.enabled = enabled
        self.duration_ms = duration_ms

    def notify(self, title: str, body: str) -> None:
        if not self.enabled:
            logger.debug(f"Notifications disabled, skipping: {title}")
            return
        logger.info(f"Notification: {title} - {body}")
        if self.tray_icon is None:
            return
        try:
            self.tray_icon.showMessage(title, body, QSystemTrayIcon.Information, self.duration_ms)
        except Exception as e:
            logger.warning(f"Failed to send notification: {e}")
