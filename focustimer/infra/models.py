"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import (
    TaskModel, TimeExtensionModel, TaskRunModel, TaskActionModel,
    TaskMemoModel, TaskNoteModel, TaskTagModel, Base
)

__all__ = [
    "TaskModel", "TimeExtensionModel", "TaskRunModel", "TaskActionModel",
    "TaskMemoModel", "TaskNoteModel", "TaskTagModel", "Base",
]
