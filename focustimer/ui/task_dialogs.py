from typing import Optional

from PySide6.QtWidgets import (
    QDialog, QFormLayout, QLineEdit, QSpinBox, QCheckBox, QDialogButtonBox, QMessageBox
)
from pydantic import ValidationError

from focustimer.domain.models import Task
from focustimer.i18n import tr


class AddTaskDialog(QDialog):
    """
    Collect title, expected duration and importance for a new task.
    """
    def __init__(self, default_duration_minutes: int = 5, title: str = "", parent=None):
        super().__init__(parent)
        self.setWindowTitle(tr("task_dialog.title"))
        self.task: Optional[Task] = None

        layout = QFormLayout(self)

        self.title_input = QLineEdit(title)
        layout.addRow(tr("task_dialog.name"), self.title_input)

        self.duration_input = QSpinBox()
        self.duration_input.setRange(1, 24 * 60)
        self.duration_input.setValue(default_duration_minutes)
        layout.addRow(tr("task_dialog.duration"), self.duration_input)

        self.important_input = QCheckBox(tr("task_dialog.important"))
        layout.addRow(self.important_input)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def _on_accept(self):
        try:
            self.task = Task(
                title=self.title_input.text().strip(),
                expected_duration_minutes=self.duration_input.value(),
                is_important=self.important_input.isChecked(),
            )
        except ValidationError as e:
            QMessageBox.warning(self, tr("error"), str(e))
            return
        self.accept()
