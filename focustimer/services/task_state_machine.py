"""
Task Status State Machine - sequences status changes across all tasks.

Architecture Decision: ordered two-phase start
The tray countdown is a single process-wide resource, so at most one task may
be IN_PROGRESS. Persistence is not transactional; starting a task therefore
runs as two ordered phases: first every other running task is persisted as
PAUSED (each attempt independent, failures logged and skipped), then the
target is persisted as IN_PROGRESS. Only then is the target's countdown
started on the tray; paused tasks have their countdowns frozen first so none
of them can read the tray while it counts for another task. Requests are
serialized so two starts can never interleave their phases.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol

from focustimer.domain.models import (
    Task, TaskStatus, TaskUpdate, TaskRun, TimeExtension, RunEndType, StatusChange
)
from focustimer.services.timer_client import TimerServiceClient

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    """The subset of TaskRepository the state machine relies on"""

    async def list_tasks(self) -> List[Task]: ...

    async def update_task(self, update: TaskUpdate) -> None: ...

    async def start_run(self, task_id: int, started_at: Optional[datetime] = None) -> TaskRun: ...

    async def end_open_run(self, task_id: int, end_type: RunEndType,
                           ended_at: Optional[datetime] = None) -> Optional[TaskRun]: ...

    async def add_time_extension(self, extension: TimeExtension) -> TimeExtension: ...


class ManagedTimer(Protocol):
    """A task's countdown as the state machine drives it (see TimerEngine)"""

    def snapshot_remaining_seconds(self) -> int: ...

    def set_in_progress(self, in_progress: bool) -> None: ...

    async def play(self, emit_status: bool = True) -> None: ...


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    REJECTED = "rejected"  # not in the transition table; nothing was written
    FAILED = "failed"  # the target's own write failed


_RUN_END_TYPES = {
    TaskStatus.PAUSED: RunEndType.PAUSED,
    TaskStatus.COMPLETED: RunEndType.COMPLETED,
}


class TaskStatusStateMachine:
    def __init__(self, repository: TaskStore, client: Optional[TimerServiceClient] = None,
                 now: Callable[[], datetime] = datetime.now):
        self.repository = repository
        self.client = client
        self.now = now
        self._timers: Dict[int, ManagedTimer] = {}
        self._lock = asyncio.Lock()

    def register_timer(self, task_id: int, timer: ManagedTimer) -> None:
        """Let transitions read and drive this task's live countdown"""
        self._timers[task_id] = timer

    def unregister_timer(self, task_id: int) -> None:
        self._timers.pop(task_id, None)

    @staticmethod
    def is_allowed(current: TaskStatus, requested: TaskStatus) -> bool:
        if current == requested:
            return False
        if requested == TaskStatus.IN_PROGRESS:
            return current in (TaskStatus.INBOX, TaskStatus.PAUSED)
        if requested == TaskStatus.PAUSED:
            return current == TaskStatus.IN_PROGRESS
        if requested == TaskStatus.COMPLETED:
            return True
        if requested == TaskStatus.INBOX:
            return current == TaskStatus.COMPLETED
        if requested == TaskStatus.ARCHIVED:
            return current in (TaskStatus.INBOX, TaskStatus.PAUSED)
        return False

    async def apply(self, change: StatusChange) -> TransitionOutcome:
        """Handle a StatusChange emitted by a timer engine"""
        return await self.change_status(change.task_id, change.status, change.remaining_time_seconds)

    async def change_status(self, task_id: int, new_status: TaskStatus,
                            remaining_time_seconds: Optional[int] = None) -> TransitionOutcome:
        """
        Move one task to new_status.

        PAUSED requires remaining_time_seconds (the value the engine committed
        on pause). Callers refresh their task list after every attempt.
        """
        async with self._lock:
            try:
                tasks = await self.repository.list_tasks()
            except Exception as e:
                logger.error(f"Could not load tasks for status change of {task_id}: {e}")
                return TransitionOutcome.FAILED

            task = next((t for t in tasks if t.id == task_id), None)
            if task is None:
                logger.warning(f"Status change for unknown task {task_id} rejected")
                return TransitionOutcome.REJECTED

            if not self.is_allowed(task.status, new_status):
                logger.info(f"Transition {task.status.value} -> {new_status.value} for task {task_id} rejected")
                return TransitionOutcome.REJECTED

            if new_status == TaskStatus.PAUSED and remaining_time_seconds is None:
                logger.warning(f"Pause of task {task_id} without remaining time rejected")
                return TransitionOutcome.REJECTED

            now = self.now()
            if new_status == TaskStatus.IN_PROGRESS:
                await self._pause_others(tasks, task_id, now)

            update = self._build_update(task, new_status, remaining_time_seconds, now)
            try:
                await self.repository.update_task(update)
            except Exception as e:
                logger.error(f"Could not move task {task_id} to {new_status.value}: {e}")
                return TransitionOutcome.FAILED

            await self._record_run(task, new_status, now)

            if new_status == TaskStatus.IN_PROGRESS:
                await self._start_timer(task_id)

            if task.status == TaskStatus.IN_PROGRESS and new_status in _RUN_END_TYPES:
                await self._hand_off_display()

            logger.info(f"Task {task_id}: {task.status.value} -> {new_status.value}")
            return TransitionOutcome.APPLIED

    async def record_extension(self, extension: TimeExtension) -> bool:
        """
        Persist an extension emitted by a timer engine.

        Runs in turn with status changes, so a pause right after an extend
        clamps against the extended duration.
        """
        if extension.new_duration < 1:
            logger.warning(
                f"Extension for task {extension.task_id} to {extension.new_duration} min not recorded"
            )
            return False

        async with self._lock:
            try:
                await self.repository.add_time_extension(extension)
                return True
            except Exception as e:
                logger.warning(f"Could not record extension for task {extension.task_id}: {e}")
                return False

    def _build_update(self, task: Task, new_status: TaskStatus,
                      remaining_time_seconds: Optional[int], now: datetime) -> TaskUpdate:
        if new_status == TaskStatus.IN_PROGRESS:
            return TaskUpdate(id=task.id, status=new_status, last_run_at=now)
        if new_status == TaskStatus.PAUSED:
            return TaskUpdate(
                id=task.id,
                status=new_status,
                last_paused_at=now,
                remaining_time_seconds=self._clamp(task, remaining_time_seconds),
            )
        if new_status == TaskStatus.COMPLETED:
            return TaskUpdate(id=task.id, status=new_status, completed_at=now, remaining_time_seconds=0)
        if new_status == TaskStatus.INBOX:
            return TaskUpdate(id=task.id, status=new_status, completed_at=None)
        return TaskUpdate(id=task.id, status=new_status)

    async def _pause_others(self, tasks: List[Task], task_id: int, now: datetime):
        """Phase one of a start: persist every other running task as PAUSED"""
        for other in tasks:
            if other.id == task_id or other.status != TaskStatus.IN_PROGRESS:
                continue

            fields = {"status": TaskStatus.PAUSED, "last_paused_at": now}
            remaining = self._snapshot(other)
            if remaining is not None:
                fields["remaining_time_seconds"] = remaining
            try:
                await self.repository.update_task(TaskUpdate(id=other.id, **fields))
            except Exception as e:
                logger.warning(f"Could not pause task {other.id} before starting {task_id}: {e}")
                continue

            logger.info(f"Task {other.id} paused with {remaining}s left to start task {task_id}")
            await self._end_run(other.id, RunEndType.PAUSED, now)

    def _freeze_others(self, task_id: int):
        for other_id, timer in self._timers.items():
            if other_id != task_id:
                timer.set_in_progress(False)

    async def _start_timer(self, task_id: int):
        self._freeze_others(task_id)
        timer = self._timers.get(task_id)
        if timer is None:
            return
        try:
            await timer.play(emit_status=False)
        except Exception as e:
            logger.warning(f"Could not start the countdown for task {task_id}: {e}")

    def _snapshot(self, task: Task) -> Optional[int]:
        timer = self._timers.get(task.id)
        if timer is not None:
            return self._clamp(task, timer.snapshot_remaining_seconds())
        if task.remaining_time_seconds is None:
            return None
        return self._clamp(task, task.remaining_time_seconds)

    @staticmethod
    def _clamp(task: Task, seconds: int) -> int:
        return max(0, min(int(seconds), task.expected_duration_seconds))

    async def _record_run(self, task: Task, new_status: TaskStatus, now: datetime):
        if new_status == TaskStatus.IN_PROGRESS:
            try:
                await self.repository.start_run(task.id, now)
            except Exception as e:
                logger.warning(f"Could not open run history for task {task.id}: {e}")
        elif task.status == TaskStatus.IN_PROGRESS and new_status in _RUN_END_TYPES:
            await self._end_run(task.id, _RUN_END_TYPES[new_status], now)

    async def _end_run(self, task_id: int, end_type: RunEndType, now: datetime):
        try:
            await self.repository.end_open_run(task_id, end_type, now)
        except Exception as e:
            logger.warning(f"Could not close run history for task {task_id}: {e}")

    async def _hand_off_display(self):
        """With nothing running, show the most recently run paused task, else idle"""
        if self.client is None:
            return
        try:
            tasks = await self.repository.list_tasks()
        except Exception as e:
            logger.warning(f"Could not load tasks for tray hand-off: {e}")
            return

        if any(t.status == TaskStatus.IN_PROGRESS for t in tasks):
            return

        paused = [t for t in tasks if t.status == TaskStatus.PAUSED]
        if not paused:
            await self.client.show_idle()
            return

        latest = max(paused, key=lambda t: (t.last_run_at or datetime.min, t.id or 0))
        remaining = latest.remaining_time_seconds
        if remaining is None:
            remaining = latest.expected_duration_seconds
        await self.client.show_paused(remaining, latest.title)
