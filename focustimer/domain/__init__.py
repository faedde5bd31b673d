"""Domain layer - Pure business entities and logic"""

from .models import (
    Task, TaskStatus, TaskUpdate, TimeExtension, TaskRun, TaskAction,
    TaskMemo, TaskNote, TaskTag, RunEndType, ActionType, StatusChange, UserPreferences,
)
from .urgency import UrgencyLevel, UrgencyColors, compute_progress, get_urgency_level, get_urgency_colors

__all__ = [
    "Task", "TaskStatus", "TaskUpdate", "TimeExtension", "TaskRun", "TaskAction",
    "TaskMemo", "TaskNote", "TaskTag",
    "RunEndType", "ActionType", "StatusChange", "UserPreferences",
    "UrgencyLevel", "UrgencyColors", "compute_progress", "get_urgency_level", "get_urgency_colors",
]
