"""
Main Window - always-on-top task list with one countdown row per task.

Architecture Decision: Simplicity first
The window only turns user intents into service calls. Every status change
goes through the state machine and is followed by a full refresh from the
repository, so rows always mirror what was persisted.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout, QLineEdit, QLabel,
    QMessageBox, QPushButton, QScrollArea, QMenu
)
from PySide6.QtCore import Qt, Signal, QEvent
from PySide6.QtGui import QFont, QAction

from focustimer.domain.models import Task, TaskStatus, StatusChange, TimeExtension, UserPreferences
from focustimer.i18n import tr
from focustimer.infra.event_bus import EventBus
from focustimer.infra.repository import TaskRepository
from focustimer.services import TaskStatusStateMachine, TimerServiceClient, TransitionOutcome
from .task_dialogs import AddTaskDialog
from .task_widget import TaskRow

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """
    Task list window.

    Features:
    - Quick-add input (Enter adds with the default duration, "+" opens the dialog)
    - One TaskRow per task, reused across refreshes
    - Hides to tray on close
    """

    # Signals
    closed = Signal()  # Emitted when window is hidden to tray
    quit_requested = Signal()
    error_occurred = Signal(str)

    def __init__(self, repository: TaskRepository, state_machine: TaskStatusStateMachine,
                 client: TimerServiceClient, bus: EventBus, preferences: UserPreferences,
                 loop: asyncio.AbstractEventLoop, notifier=None, parent=None):
        super().__init__(parent)
        self.repository = repository
        self.state_machine = state_machine
        self.client = client
        self.bus = bus
        self.preferences = preferences
        self.loop = loop
        self.notifier = notifier
        self.rows: Dict[int, TaskRow] = {}
        self._refreshing: Optional[asyncio.Task] = None

        self.setWindowTitle(tr("main.title"))
        self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint)

        self._setup_ui()
        # Queued so the modal box never opens inside the asyncio pump
        self.error_occurred.connect(self._show_error, Qt.QueuedConnection)

    def _setup_ui(self):
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        layout = QVBoxLayout(central_widget)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(8)

        # Input row
        input_row = QHBoxLayout()
        self.task_input = QLineEdit()
        self.task_input.setPlaceholderText(tr("main.task_placeholder"))
        self.task_input.returnPressed.connect(self._on_task_entered)
        task_font = QFont()
        task_font.setPointSize(11)
        self.task_input.setFont(task_font)
        self.task_input.setMinimumHeight(30)
        input_row.addWidget(self.task_input, stretch=3)

        self.add_btn = QPushButton("+")
        self.add_btn.setFixedSize(30, 30)
        self.add_btn.setCursor(Qt.PointingHandCursor)
        self.add_btn.setToolTip(tr("main.add"))
        self.add_btn.clicked.connect(self._open_add_dialog)
        input_row.addWidget(self.add_btn)

        self.refresh_btn = QPushButton("⟳")
        self.refresh_btn.setFixedSize(30, 30)
        self.refresh_btn.setCursor(Qt.PointingHandCursor)
        self.refresh_btn.setToolTip(tr("main.refresh"))
        self.refresh_btn.clicked.connect(self.request_refresh)
        input_row.addWidget(self.refresh_btn)
        layout.addLayout(input_row)

        # Task list
        self.list_container = QWidget()
        self.list_layout = QVBoxLayout(self.list_container)
        self.list_layout.setContentsMargins(0, 0, 0, 0)
        self.list_layout.setSpacing(6)
        self.empty_label = QLabel(tr("main.empty"))
        self.empty_label.setAlignment(Qt.AlignCenter)
        self.list_layout.addWidget(self.empty_label)
        self.list_layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.list_container)
        layout.addWidget(scroll)

        self.setMinimumSize(460, 360)

    # ------------------------------------------------------------------
    # Async plumbing
    # ------------------------------------------------------------------

    def _run(self, coro) -> asyncio.Task:
        task = self.loop.create_task(coro)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task):
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"UI task failed: {task.exception()}")

    def _show_error(self, message: str):
        QMessageBox.warning(self, tr("error"), message)

    # ------------------------------------------------------------------
    # Task list
    # ------------------------------------------------------------------

    def request_refresh(self):
        """Reload all tasks; one reload at a time"""
        if self._refreshing is not None and not self._refreshing.done():
            return
        self._refreshing = self._run(self.refresh())

    async def refresh(self):
        try:
            tasks = await self.repository.list_tasks()
        except Exception as e:
            logger.error(f"Failed to load tasks: {e}")
            self.error_occurred.emit(tr("error.load_failed", error=e))
            return
        self._apply_tasks([t for t in tasks if t.status != TaskStatus.ARCHIVED])

    def _apply_tasks(self, tasks: List[Task]):
        seen = set()
        for index, task in enumerate(tasks):
            seen.add(task.id)
            row = self.rows.get(task.id)
            if row is None:
                row = self._create_row(task)
            else:
                row.update_task(task)
            self.list_layout.removeWidget(row)
            self.list_layout.insertWidget(index, row)

        for task_id in [tid for tid in self.rows if tid not in seen]:
            self._remove_row(task_id)

        self.empty_label.setVisible(not self.rows)

    def _create_row(self, task: Task) -> TaskRow:
        row = TaskRow(task, self.client, self.bus, self.preferences, self.loop,
                      notifier=self.notifier, parent=self.list_container)
        row.status_requested.connect(self._on_status_requested)
        row.start_requested.connect(lambda tid: self._request_status(tid, TaskStatus.IN_PROGRESS))
        row.extension_recorded.connect(self._on_extension_recorded)
        row.complete_requested.connect(lambda tid: self._request_status(tid, TaskStatus.COMPLETED))
        row.reopen_requested.connect(lambda tid: self._request_status(tid, TaskStatus.INBOX))
        row.archive_requested.connect(lambda tid: self._request_status(tid, TaskStatus.ARCHIVED))
        self.state_machine.register_timer(task.id, row.engine)
        self.rows[task.id] = row
        return row

    def _remove_row(self, task_id: int):
        row = self.rows.pop(task_id)
        self.state_machine.unregister_timer(task_id)
        row.dispose()
        self.list_layout.removeWidget(row)
        row.deleteLater()

    def recover_timers(self):
        """Re-read the tray countdown for every row after the app regains focus"""
        for row in self.rows.values():
            self._run(row.engine.recover())

    def shutdown(self):
        for row in self.rows.values():
            row.engine.shutdown()

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def _on_status_requested(self, change: StatusChange):
        self._run(self._apply_status_change(change))

    async def _apply_status_change(self, change: StatusChange):
        outcome = await self.state_machine.apply(change)
        if outcome == TransitionOutcome.FAILED:
            row = self.rows.get(change.task_id)
            if change.status == TaskStatus.IN_PROGRESS and row is not None:
                await row.engine.pause(emit_status=False)
            self.error_occurred.emit(tr("error.update_failed", error=change.status.value))
        await self.refresh()

    def _request_status(self, task_id: int, status: TaskStatus):
        self._run(self._change_status(task_id, status))

    async def _change_status(self, task_id: int, status: TaskStatus):
        row = self.rows.get(task_id)
        outcome = await self.state_machine.change_status(task_id, status)
        if outcome == TransitionOutcome.FAILED:
            self.error_occurred.emit(tr("error.update_failed", error=status.value))
        elif outcome == TransitionOutcome.APPLIED and status == TaskStatus.COMPLETED and row is not None:
            self._notify_completed(row.task)
        await self.refresh()

    def _notify_completed(self, task: Task):
        if self.notifier is None:
            return
        if task.last_run_at is None:
            body = tr("notify.completed_body")
        else:
            body = tr("notify.completed_body_duration", minutes=task.expected_duration_minutes)
        self.notifier.notify(tr("notify.completed_title", title=task.title), body)

    def _on_extension_recorded(self, extension: TimeExtension):
        self._run(self.state_machine.record_extension(extension))

    # ------------------------------------------------------------------
    # Adding tasks
    # ------------------------------------------------------------------

    def _on_task_entered(self):
        title = self.task_input.text().strip()
        if not title:
            return
        self.task_input.clear()
        self._run(self._add_task(Task(
            title=title[:200],
            expected_duration_minutes=self.preferences.default_duration_minutes,
        )))

    def _open_add_dialog(self):
        dialog = AddTaskDialog(
            default_duration_minutes=self.preferences.default_duration_minutes,
            title=self.task_input.text().strip(),
            parent=self,
        )
        if dialog.exec() and dialog.task is not None:
            self.task_input.clear()
            self._run(self._add_task(dialog.task))

    async def _add_task(self, task: Task):
        try:
            created = await self.repository.create(task)
        except Exception as e:
            logger.error(f"Failed to create task: {e}")
            self.error_occurred.emit(tr("error.update_failed", error=e))
            return
        logger.info(f"Created task {created.id}: {created.title}")
        await self.refresh()

    # ------------------------------------------------------------------
    # Window events
    # ------------------------------------------------------------------

    def contextMenuEvent(self, event):
        menu = QMenu(self)

        hide_action = QAction(tr("tray.show_window"), self)
        hide_action.triggered.connect(self.hide)
        menu.addAction(hide_action)

        quit_action = QAction(tr("tray.quit"), self)
        quit_action.triggered.connect(self.quit_requested.emit)
        menu.addAction(quit_action)

        menu.exec(event.globalPos())

    def closeEvent(self, event):
        """Override close event to minimize to tray instead of quitting"""
        if self.preferences.minimize_to_tray:
            event.ignore()
            self.hide()
            self.closed.emit()
        else:
            event.accept()
            self.quit_requested.emit()

    def changeEvent(self, event):
        if event.type() == QEvent.ActivationChange and self.isActiveWindow():
            self.recover_timers()
        super().changeEvent(event)

    def retranslate_ui(self, lang: Optional[str] = None):
        """Update strings when language changes"""
        self.setWindowTitle(tr("main.title"))
        self.task_input.setPlaceholderText(tr("main.task_placeholder"))
        self.add_btn.setToolTip(tr("main.add"))
        self.refresh_btn.setToolTip(tr("main.refresh"))
        self.empty_label.setText(tr("main.empty"))
