"""
Tray Timer - the process-wide authoritative countdown.

Architecture Decision: a long-lived countdown outside the task rows
The tray keeps counting while the main window is hidden, minimized or busy.
It counts whole seconds on its own one-second QTimer, owns the tray label,
and announces expiry on the event bus. Only one countdown exists per process;
starting it for a task replaces whatever it was counting before.
"""

import logging
from typing import Optional, Tuple

from PySide6.QtCore import QObject, QTimer, Signal

from focustimer.i18n import tr
from focustimer.infra.event_bus import EventBus, get_event_bus
from focustimer.utils import format_tray_title

logger = logging.getLogger(__name__)


class TrayTimer(QObject):
    """
    Countdown state: remaining whole seconds, the label it is shown with, and
    whether it is running. The coroutine methods are the service's API.
    """

    title_changed = Signal(str)

    TICK_MS = 1000

    def __init__(self, bus: Optional[EventBus] = None, title_max_length: int = 12):
        super().__init__()
        self.bus = bus or get_event_bus()
        self.title_max_length = title_max_length

        self.remaining_secs: int = 0
        self.task_title: str = ""
        self.is_running: bool = False
        self.title: str = tr("app.idle_title")

        self.timer = QTimer(self)
        self.timer.setInterval(self.TICK_MS)
        self.timer.timeout.connect(self._on_tick)

    def activate(self):
        """Start the one-second countdown loop"""
        self.timer.start()

    def deactivate(self):
        self.timer.stop()

    async def start(self, remaining_secs: int, task_title: str) -> None:
        """Count down from remaining_secs, labelled with task_title"""
        self.remaining_secs = max(0, int(remaining_secs))
        self.task_title = task_title
        self.is_running = True
        self._set_title(self._countdown_title())

    async def stop(self, show_idle: bool = False) -> int:
        """
        Stop counting and return the remaining seconds.

        The label stays frozen on the stopped value unless show_idle is set.
        """
        self.is_running = False
        if show_idle:
            self._set_title(tr("app.idle_title"))
        else:
            self._set_title(self._countdown_title())
        return self.remaining_secs

    async def get_remaining(self) -> Tuple[int, bool, str]:
        """Remaining seconds, run state and the label the countdown belongs to"""
        return self.remaining_secs, self.is_running, self.task_title

    async def sync(self, remaining_secs: int) -> None:
        """Move the countdown to remaining_secs without changing its label or state"""
        self.remaining_secs = max(0, int(remaining_secs))
        if self.is_running:
            self._set_title(self._countdown_title())

    async def show_frozen(self, remaining_secs: int, task_title: str) -> None:
        """Display a stopped countdown for task_title"""
        self.is_running = False
        self.remaining_secs = max(0, int(remaining_secs))
        self.task_title = task_title
        self._set_title(self._countdown_title())

    async def show_idle(self) -> None:
        self.is_running = False
        self.task_title = ""
        self._set_title(tr("app.idle_title"))

    def _countdown_title(self) -> str:
        return format_tray_title(self.remaining_secs, self.task_title, self.title_max_length)

    def _set_title(self, title: str):
        if title != self.title:
            self.title = title
            self.title_changed.emit(title)

    def _on_tick(self):
        """Called every second to advance the countdown"""
        if not self.is_running or self.remaining_secs <= 0:
            return

        self.remaining_secs -= 1
        self._set_title(self._countdown_title())

        if self.remaining_secs == 0:
            self.is_running = False
            self._set_title(tr("app.idle_title"))
            logger.info(f"Countdown for '{self.task_title}' ended")
            self.bus.timer_ended.emit()
