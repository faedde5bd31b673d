"""
Task Row - one task with its countdown, controls and urgency styling.

Architecture Decision: Presentation Layer
The row owns a TimerEngine and only forwards user intents; status changes
are requested through signals and applied by the main window via the state
machine, never written here. Starting is one of those requests: the engine
only takes the tray once the state machine has paused whatever held it.
"""

import asyncio
from typing import List, Optional

from PySide6.QtWidgets import QFrame, QHBoxLayout, QVBoxLayout, QLabel, QPushButton, QProgressBar
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont

from focustimer.domain.models import Task, TaskStatus, UserPreferences
from focustimer.domain.urgency import get_urgency_status_text
from focustimer.i18n import tr
from focustimer.infra.event_bus import EventBus
from focustimer.services.timer_client import TimerServiceClient
from focustimer.services.timer_engine import TimerEngine
from focustimer.utils import format_time, format_time_ms


class TaskRow(QFrame):
    # Signals
    status_requested = Signal(object)  # StatusChange from the engine
    start_requested = Signal(int)
    extension_recorded = Signal(object)  # TimeExtension from the engine
    complete_requested = Signal(int)
    reopen_requested = Signal(int)
    archive_requested = Signal(int)

    def __init__(self, task: Task, client: TimerServiceClient, bus: EventBus,
                 preferences: UserPreferences, loop: asyncio.AbstractEventLoop,
                 notifier=None, parent=None):
        super().__init__(parent)
        self.task = task
        self.loop = loop
        self.bus = bus
        self.quick_extend_minutes: List[int] = list(preferences.quick_extend_minutes)

        self.engine = TimerEngine(task, client, notifier=notifier, preferences=preferences, loop=loop)
        self.engine.tick.connect(self._on_tick)
        self.engine.running_changed.connect(self._on_running_changed)
        self.engine.status_changed.connect(self.status_requested.emit)
        self.engine.time_extended.connect(self.extension_recorded.emit)
        self.engine.timer_ended.connect(self._refresh_view)
        self.bus.timer_ended.connect(self.engine.handle_timer_ended)

        self._setup_ui()
        self.engine.set_in_progress(task.is_in_progress)
        self._refresh_view()

    def _setup_ui(self):
        self.setFrameShape(QFrame.StyledPanel)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 6, 10, 6)
        layout.setSpacing(4)

        top = QHBoxLayout()
        self.title_label = QLabel(self.task.title)
        title_font = QFont()
        title_font.setPointSize(11)
        self.title_label.setFont(title_font)
        top.addWidget(self.title_label, stretch=3)

        self.urgency_label = QLabel()
        top.addWidget(self.urgency_label)

        self.time_label = QLabel()
        time_font = QFont()
        time_font.setPointSize(11)
        time_font.setBold(True)
        self.time_label.setFont(time_font)
        self.time_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        top.addWidget(self.time_label, stretch=1)
        layout.addLayout(top)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 1000)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(6)
        layout.addWidget(self.progress_bar)

        controls = QHBoxLayout()
        self.toggle_btn = QPushButton("▶")
        self.toggle_btn.setFixedSize(30, 30)
        self.toggle_btn.setCursor(Qt.PointingHandCursor)
        self.toggle_btn.clicked.connect(self._toggle)
        controls.addWidget(self.toggle_btn)

        self.extend_buttons: List[QPushButton] = []
        for minutes in self.quick_extend_minutes:
            btn = QPushButton(tr("task.extend", minutes=minutes))
            btn.setCursor(Qt.PointingHandCursor)
            btn.clicked.connect(lambda checked=False, m=minutes: self._run(self.engine.quick_extend(m)))
            controls.addWidget(btn)
            self.extend_buttons.append(btn)

        controls.addStretch()

        self.complete_btn = QPushButton()
        self.complete_btn.clicked.connect(self._on_complete_clicked)
        controls.addWidget(self.complete_btn)

        self.archive_btn = QPushButton(tr("task.archive"))
        self.archive_btn.clicked.connect(lambda: self.archive_requested.emit(self.task.id))
        controls.addWidget(self.archive_btn)
        layout.addLayout(controls)

    def update_task(self, task: Task):
        """Apply a refreshed record and follow its status"""
        self.task = task
        self.engine.set_in_progress(task.is_in_progress)
        self.engine.update_task(task)
        self.title_label.setText(task.title)
        self._refresh_view()

    def dispose(self):
        """Release the engine before the row is deleted"""
        try:
            self.bus.timer_ended.disconnect(self.engine.handle_timer_ended)
        except (RuntimeError, TypeError):
            pass
        self.engine.shutdown()

    def _run(self, coro) -> Optional[asyncio.Task]:
        return self.loop.create_task(coro)

    def _toggle(self):
        if self.engine.is_running:
            self._run(self.engine.pause())
        else:
            # The state machine pauses the running task, then starts this engine
            self.start_requested.emit(self.task.id)

    def _on_complete_clicked(self):
        if self.task.status == TaskStatus.COMPLETED:
            self.reopen_requested.emit(self.task.id)
        else:
            self.complete_requested.emit(self.task.id)

    def _on_tick(self, remaining_ms: int):
        self.time_label.setText(format_time_ms(remaining_ms))
        self.progress_bar.setValue(int(self.engine.progress * 1000))

    def _on_running_changed(self, running: bool):
        self._refresh_view()

    def _refresh_view(self):
        status = self.task.status
        running = self.engine.is_running
        finished = status in (TaskStatus.COMPLETED, TaskStatus.ARCHIVED)

        self.toggle_btn.setText("⏸" if running else "▶")
        self.toggle_btn.setToolTip(tr("task.pause") if running else tr("task.play"))
        self.toggle_btn.setEnabled(not finished)
        for btn in self.extend_buttons:
            btn.setEnabled(not finished)
        self.complete_btn.setText(tr("task.reopen") if status == TaskStatus.COMPLETED else tr("task.complete"))
        self.archive_btn.setEnabled(status in (TaskStatus.INBOX, TaskStatus.PAUSED))

        if running:
            self.time_label.setText(format_time_ms(self.engine.remaining_ms))
        elif status == TaskStatus.PAUSED:
            self.time_label.setText(tr("task.paused_at", remaining=format_time(self.engine.snapshot_remaining_seconds())))
        else:
            self.time_label.setText(format_time(self.engine.snapshot_remaining_seconds()))

        level = self.engine.urgency_level
        colors = self.engine.urgency_colors
        self.urgency_label.setText(get_urgency_status_text(level) if running else "")
        self.progress_bar.setValue(int(self.engine.progress * 1000))
        self.setStyleSheet(
            f"TaskRow {{ background: {colors.bg}; border: 1px solid {colors.border}; border-radius: 8px; }}"
            f"QProgressBar::chunk {{ background: {colors.progress}; }}"
        )
