"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Pydantic validates data coming back from the database and settings files,
and gives partial updates (TaskUpdate) a precise notion of "explicitly set"
fields through ``model_fields_set``.
"""

from datetime import datetime, date
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class TaskStatus(str, Enum):
    """Lifecycle states of a task."""
    INBOX = "INBOX"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class RunEndType(str, Enum):
    """How a run-history entry was closed."""
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    TIMEOUT = "timeout"
    INTERRUPTED = "interrupted"


class ActionType(str, Enum):
    """Kinds of entries in a task's action history."""
    STARTED = "STARTED"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"
    RESTORED = "RESTORED"
    STATUS_CHANGED = "STATUS_CHANGED"
    TIME_EXTENDED = "TIME_EXTENDED"

    @classmethod
    def for_status(cls, status: TaskStatus) -> "ActionType":
        """Map the status a task moved into onto the action it represents"""
        return {
            TaskStatus.IN_PROGRESS: cls.STARTED,
            TaskStatus.PAUSED: cls.PAUSED,
            TaskStatus.COMPLETED: cls.COMPLETED,
            TaskStatus.ARCHIVED: cls.ARCHIVED,
            TaskStatus.INBOX: cls.RESTORED,
        }.get(status, cls.STATUS_CHANGED)


class TimeExtension(BaseModel):
    """
    A record of time added to a task's expected duration.

    Durations are in minutes; new_duration - previous_duration == added_minutes.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    added_minutes: int
    previous_duration: int
    new_duration: int
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class TaskRun(BaseModel):
    """A single play-to-pause (or play-to-complete) stretch of a task."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_seconds: int = 0
    end_type: RunEndType = RunEndType.RUNNING


class TaskAction(BaseModel):
    """An append-only audit entry for status changes and extensions."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    action_type: ActionType
    previous_status: Optional[TaskStatus] = None
    new_status: Optional[TaskStatus] = None
    metadata_json: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class TaskMemo(BaseModel):
    """Short free-text memo on a task."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    content: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=datetime.now)


class TaskNote(BaseModel):
    """Longer titled note on a task; title and content can be edited later."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    title: str = Field(..., min_length=1, max_length=200)
    content: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class TaskTag(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    tag: str = Field(..., min_length=1, max_length=50)
    created_at: datetime = Field(default_factory=datetime.now)


class Task(BaseModel):
    """
    Represents a timed unit of work.

    remaining_time_seconds is the last authoritative snapshot, written when the
    task leaves the running state. It is None until the task has run once.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.INBOX
    is_important: bool = False

    expected_duration_minutes: int = Field(default=5, gt=0)
    remaining_time_seconds: Optional[int] = None

    target_date: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    last_paused_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None

    @property
    def expected_duration_seconds(self) -> int:
        return self.expected_duration_minutes * 60

    @property
    def is_in_progress(self) -> bool:
        return self.status == TaskStatus.IN_PROGRESS


class TaskUpdate(BaseModel):
    """
    Partial update of a task.

    Only fields passed to the constructor are written; passing None for a
    field clears the column. Use ``changes()`` to read what was set.
    """

    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    is_important: Optional[bool] = None
    expected_duration_minutes: Optional[int] = None
    remaining_time_seconds: Optional[int] = None
    target_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    last_paused_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None

    def changes(self) -> dict:
        """Explicitly set fields, without the id"""
        return self.model_dump(exclude_unset=True, exclude={"id"})


class StatusChange(BaseModel):
    """
    Emitted by a timer engine when its task should change status.

    remaining_time_seconds accompanies PAUSED so the caller can persist it.
    """

    task_id: int
    status: TaskStatus
    remaining_time_seconds: Optional[int] = None


class UserPreferences(BaseModel):
    """
    User configuration and preferences.

    This allows users to customize behavior without touching code.
    """
    model_config = ConfigDict(from_attributes=True)

    # Timer settings
    default_duration_minutes: int = Field(default=5, gt=0, description="Expected duration for new tasks")
    fast_tick_ms: int = Field(default=10, ge=1, description="Local interpolation period")
    sync_tick_ms: int = Field(default=1000, ge=100, description="Timer service reconciliation period")
    sync_tolerance_ms: int = Field(
        default=1500,
        ge=0,
        description="Local and service clocks may disagree by this much before the service value is adopted"
    )
    quick_extend_minutes: List[int] = Field(default_factory=lambda: [1, 3, 5])

    # Notification settings
    notifications_enabled: bool = True
    notification_duration_ms: int = 10000

    # UI settings
    minimize_to_tray: bool = True
    tray_title_max_length: int = Field(default=12, ge=1)
    language: str = Field(default="auto", description="UI language: 'en', 'ko', or 'auto' (detect from system)")

    # Diagnostics
    log_level: str = Field(default="INFO", description="Root logging level")
