"""
System Tray Application - Main UI entry point.

Architecture Decision: Presentation Layer
This layer only handles UI logic. Business logic is delegated to Services.
The asyncio loop that services and repositories run on is owned here and
pumped from the Qt event loop, so coroutines and Qt slots share one thread.
"""

import sys
import asyncio
import logging
from PySide6.QtWidgets import QApplication, QSystemTrayIcon, QMenu, QMessageBox
from PySide6.QtGui import QIcon, QPixmap, QColor, QAction, QKeySequence, QShortcut
from PySide6.QtCore import QTimer, Qt

from focustimer.i18n import tr, set_language, on_language_changed
from focustimer.infra.config import get_settings
from focustimer.infra.db import init_db, get_engine
from focustimer.infra.event_bus import get_event_bus
from focustimer.infra.repository import TaskRepository
from focustimer.infra.tray_timer import TrayTimer
from focustimer.services import TimerServiceClient, TaskStatusStateMachine
from focustimer.services.notification_service import NotificationService
from .main_window import MainWindow
from focustimer.utils import get_resource_path

logger = logging.getLogger(__name__)

# Interval of the asyncio pump; short enough that awaited service calls feel immediate
ASYNC_PUMP_MS = 5


class SystemTrayApp:
    """
    Main application class managing the system tray icon and coordination.

    Follows Clean Architecture: UI delegates to Services, Services use Repositories.
    """

    def __init__(self):
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)  # Keep running when windows close

        app_icon = self._create_icon()
        self.app.setWindowIcon(app_icon)

        # Settings
        self.settings = get_settings()
        self.prefs = self.settings.preferences
        set_language(self.prefs.language)

        # Event loop for async operations, driven by a Qt timer
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self.pump_timer = QTimer()
        self.pump_timer.setInterval(ASYNC_PUMP_MS)
        self.pump_timer.timeout.connect(self._pump_asyncio)

        # Tray
        self.tray_icon = QSystemTrayIcon(app_icon, self.app)
        self.tray_icon.setToolTip(tr("app.ready"))
        self.tray_icon.activated.connect(self._on_tray_icon_activated)

        # Services
        self.bus = get_event_bus()
        self.repository = TaskRepository()
        self.tray_timer = TrayTimer(self.bus, title_max_length=self.prefs.tray_title_max_length)
        self.tray_timer.title_changed.connect(self.tray_icon.setToolTip)
        self.client = TimerServiceClient(self.tray_timer)
        self.state_machine = TaskStatusStateMachine(self.repository, self.client)
        self.notifier = NotificationService(
            self.tray_icon,
            enabled=self.prefs.notifications_enabled,
            duration_ms=self.prefs.notification_duration_ms,
        )

        self.main_window = None

        self.setup_menu()
        self.tray_icon.show()
        on_language_changed(self._on_language_changed)
        self.app.applicationStateChanged.connect(self._on_application_state_changed)

        # Initialize on startup
        QTimer.singleShot(0, self._async_init)

    def _create_icon(self):
        """Create the tray icon from assets"""
        icon_path = get_resource_path("focustimer/assets/icon.ico")
        if icon_path.exists():
            return QIcon(str(icon_path))

        icon_path = get_resource_path("focustimer/assets/clock_icon.png")
        if icon_path.exists():
            return QIcon(str(icon_path))

        # Fallback if icon not found
        pixmap = QPixmap(16, 16)
        pixmap.fill(QColor("orange"))
        return QIcon(pixmap)

    def _pump_asyncio(self):
        """Run every asyncio callback that is ready, then return to Qt"""
        if self.loop.is_running():
            # A nested Qt loop (modal dialog) fired us from inside run_forever
            return
        self.loop.call_soon(self.loop.stop)
        self.loop.run_forever()

    def _async_init(self):
        """Async initialization tasks"""
        try:
            self.loop.run_until_complete(init_db())

            self.tray_timer.activate()
            self.loop.run_until_complete(self.tray_timer.show_idle())

            self.main_window = MainWindow(
                self.repository, self.state_machine, self.client, self.bus,
                self.prefs, self.loop, notifier=self.notifier,
            )
            self.main_window.closed.connect(self._on_main_window_closed)
            self.main_window.quit_requested.connect(self._quit_application)
            self.loop.run_until_complete(self.main_window.refresh())
            self.main_window.show()

            # Setup global shortcut to show window (Ctrl+Shift+T)
            self.show_shortcut = QShortcut(QKeySequence("Ctrl+Shift+T"), self.main_window)
            self.show_shortcut.activated.connect(self._show_main_window)
            self.show_shortcut.setContext(Qt.ApplicationShortcut)

            self.pump_timer.start()
            logger.info("FocusTimer started")

        except Exception as e:
            logger.exception("Initialization failed")
            QMessageBox.critical(None, tr("error"), tr("error.init_failed", error=e))

    def setup_menu(self):
        """Setup the system tray context menu"""
        menu = QMenu()

        show_action = QAction(tr("tray.show_window"), self.app)
        show_action.triggered.connect(self._show_main_window)
        menu.addAction(show_action)

        menu.addSeparator()

        quit_action = QAction(tr("tray.quit"), self.app)
        quit_action.triggered.connect(self._quit_application)
        menu.addAction(quit_action)

        self.tray_icon.setContextMenu(menu)

    def _on_language_changed(self, lang: str):
        self.setup_menu()
        if self.main_window:
            self.main_window.retranslate_ui(lang)

    def _on_application_state_changed(self, state):
        if state == Qt.ApplicationActive and self.main_window:
            self.main_window.recover_timers()

    def _show_main_window(self):
        """Show the main window"""
        if self.main_window:
            self.main_window.show()
            self.main_window.activateWindow()
            self.main_window.raise_()

    def _on_main_window_closed(self):
        """Handle main window close (minimize to tray)"""
        self.tray_icon.showMessage(
            tr("app.name"),
            tr("tray.minimized"),
            QSystemTrayIcon.Information,
            2000
        )

    def _on_tray_icon_activated(self, reason):
        """Handle tray icon click"""
        if reason in (QSystemTrayIcon.DoubleClick, QSystemTrayIcon.Trigger):
            self._show_main_window()

    def _quit_application(self):
        """Quit the application"""
        self.pump_timer.stop()

        if self.main_window:
            self.main_window.shutdown()
            self.main_window.hide()

        self.tray_timer.deactivate()
        try:
            self.loop.run_until_complete(get_engine().dispose())
        except Exception as e:
            logger.warning(f"Failed to close database: {e}")

        self.loop.close()
        self.app.quit()

    def run(self):
        """Run the application"""
        return self.app.exec()
