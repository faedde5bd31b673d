"""Infrastructure layer - Database, configuration and the tray countdown"""

from .db import DatabaseEngine, get_engine, init_db
from .models import (
    TaskModel, TimeExtensionModel, TaskRunModel, TaskActionModel,
    TaskMemoModel, TaskNoteModel, TaskTagModel
)

__all__ = [
    "DatabaseEngine", "get_engine", "init_db",
    "TaskModel", "TimeExtensionModel", "TaskRunModel", "TaskActionModel",
    "TaskMemoModel", "TaskNoteModel", "TaskTagModel",
]
