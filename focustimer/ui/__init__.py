"""UI layer - PySide6 GUI components"""

from .tray_icon import SystemTrayApp
from .main_window import MainWindow
from .task_widget import TaskRow

__all__ = ["SystemTrayApp", "MainWindow", "TaskRow"]
