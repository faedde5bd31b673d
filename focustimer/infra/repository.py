"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Mock data for testing (the state machine only needs list_tasks/update_task)
- Change data sources (local DB to cloud API)
"""

import json
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from focustimer.domain.models import (
    Task, TaskStatus, TaskUpdate, TimeExtension, TaskRun, TaskAction, ActionType, RunEndType,
    TaskMemo, TaskNote, TaskTag
)
from focustimer.infra.db import (
    TaskModel, TimeExtensionModel, TaskRunModel, TaskActionModel,
    TaskMemoModel, TaskNoteModel, TaskTagModel, get_engine
)


def _column_value(value):
    return value.value if isinstance(value, Enum) else value


class TaskRepository:
    """
    Handles all Task-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    Every public method commits on its own, so each call is applied atomically.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    async def list_tasks(self, status: Optional[TaskStatus] = None) -> List[Task]:
        """All tasks, important first, newest first"""
        session = await self._get_session()
        async with session:
            stmt = select(TaskModel).order_by(TaskModel.is_important.desc(), TaskModel.created_at.desc(), TaskModel.id.desc())
            if status is not None:
                stmt = stmt.where(TaskModel.status == status.value)
            result = await session.execute(stmt)
            return [Task.model_validate(tm) for tm in result.scalars().all()]

    async def get_by_id(self, task_id: int) -> Optional[Task]:
        """Get a specific task by ID"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(TaskModel.id == task_id)
            )
            task_model = result.scalar_one_or_none()
            return Task.model_validate(task_model) if task_model else None

    async def create(self, task: Task) -> Task:
        """Create a new task"""
        session = await self._get_session()
        async with session:
            task_model = TaskModel(
                title=task.title,
                description=task.description,
                status=task.status.value,
                is_important=task.is_important,
                expected_duration_minutes=task.expected_duration_minutes,
                remaining_time_seconds=task.remaining_time_seconds,
                target_date=task.target_date,
                created_at=task.created_at,
                updated_at=task.updated_at,
            )
            session.add(task_model)
            await session.commit()
            await session.refresh(task_model)
            return Task.model_validate(task_model)

    async def update_task(self, update: TaskUpdate) -> None:
        """
        Apply a partial update in one commit.

        A status change also appends an action-history entry, so the audit
        trail can never disagree with the status column.
        """
        changes = update.changes()
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(TaskModel.id == update.id)
            )
            model = result.scalar_one_or_none()
            if model is None:
                raise ValueError(f"Task {update.id} not found")

            previous_status = model.status
            for field, value in changes.items():
                setattr(model, field, _column_value(value))
            model.updated_at = datetime.now()

            new_status = changes.get("status")
            if new_status is not None and new_status.value != previous_status:
                session.add(TaskActionModel(
                    task_id=update.id,
                    action_type=ActionType.for_status(new_status).value,
                    previous_status=previous_status,
                    new_status=new_status.value,
                ))

            await session.commit()

    async def delete(self, task_id: int) -> None:
        """Delete a task with its history, memos, notes and tags"""
        session = await self._get_session()
        async with session:
            for child in (TimeExtensionModel, TaskRunModel, TaskActionModel,
                          TaskMemoModel, TaskNoteModel, TaskTagModel):
                await session.execute(delete(child).where(child.task_id == task_id))
            await session.execute(delete(TaskModel).where(TaskModel.id == task_id))
            await session.commit()

    async def add_time_extension(self, extension: TimeExtension) -> TimeExtension:
        """Record an extension and move the task's expected duration to new_duration"""
        if extension.new_duration < 1:
            raise ValueError(f"Expected duration must stay positive, got {extension.new_duration}")
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(TaskModel.id == extension.task_id)
            )
            task_model = result.scalar_one_or_none()
            if task_model is None:
                raise ValueError(f"Task {extension.task_id} not found")

            model = TimeExtensionModel(
                task_id=extension.task_id,
                added_minutes=extension.added_minutes,
                previous_duration=extension.previous_duration,
                new_duration=extension.new_duration,
                reason=extension.reason,
                created_at=extension.created_at,
            )
            session.add(model)
            task_model.expected_duration_minutes = extension.new_duration
            task_model.updated_at = datetime.now()
            session.add(TaskActionModel(
                task_id=extension.task_id,
                action_type=ActionType.TIME_EXTENDED.value,
                metadata_json=json.dumps({
                    "addedMinutes": extension.added_minutes,
                    "previousDuration": extension.previous_duration,
                    "newDuration": extension.new_duration,
                }),
            ))
            await session.commit()
            await session.refresh(model)
            return TimeExtension.model_validate(model)

    async def get_time_extensions(self, task_id: int) -> List[TimeExtension]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeExtensionModel)
                .where(TimeExtensionModel.task_id == task_id)
                .order_by(TimeExtensionModel.created_at.desc(), TimeExtensionModel.id.desc())
            )
            return [TimeExtension.model_validate(m) for m in result.scalars().all()]

    async def start_run(self, task_id: int, started_at: Optional[datetime] = None) -> TaskRun:
        """Open a run-history entry"""
        session = await self._get_session()
        async with session:
            model = TaskRunModel(
                task_id=task_id,
                started_at=started_at or datetime.now(),
                end_type=RunEndType.RUNNING.value,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return TaskRun.model_validate(model)

    async def end_open_run(self, task_id: int, end_type: RunEndType,
                           ended_at: Optional[datetime] = None) -> Optional[TaskRun]:
        """Close the task's latest open run, if any"""
        ended_at = ended_at or datetime.now()
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskRunModel)
                .where(TaskRunModel.task_id == task_id, TaskRunModel.ended_at.is_(None))
                .order_by(TaskRunModel.started_at.desc(), TaskRunModel.id.desc())
            )
            model = result.scalars().first()
            if model is None:
                return None
            model.ended_at = ended_at
            model.duration_seconds = max(0, int((ended_at - model.started_at).total_seconds()))
            model.end_type = end_type.value
            await session.commit()
            return TaskRun.model_validate(model)

    async def get_run_history(self, task_id: int) -> List[TaskRun]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskRunModel)
                .where(TaskRunModel.task_id == task_id)
                .order_by(TaskRunModel.started_at.desc(), TaskRunModel.id.desc())
            )
            return [TaskRun.model_validate(m) for m in result.scalars().all()]

    async def get_action_history(self, task_id: int) -> List[TaskAction]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskActionModel)
                .where(TaskActionModel.task_id == task_id)
                .order_by(TaskActionModel.created_at.desc(), TaskActionModel.id.desc())
            )
            return [TaskAction.model_validate(m) for m in result.scalars().all()]

    # Memos, notes and tags

    async def _require_task(self, session: AsyncSession, task_id: int):
        result = await session.execute(select(TaskModel.id).where(TaskModel.id == task_id))
        if result.scalar_one_or_none() is None:
            raise ValueError(f"Task {task_id} not found")

    async def add_memo(self, task_id: int, content: str) -> TaskMemo:
        memo = TaskMemo(task_id=task_id, content=content)
        session = await self._get_session()
        async with session:
            await self._require_task(session, task_id)
            model = TaskMemoModel(task_id=task_id, content=memo.content, created_at=memo.created_at)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return TaskMemo.model_validate(model)

    async def get_memos(self, task_id: int) -> List[TaskMemo]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskMemoModel)
                .where(TaskMemoModel.task_id == task_id)
                .order_by(TaskMemoModel.created_at.desc(), TaskMemoModel.id.desc())
            )
            return [TaskMemo.model_validate(m) for m in result.scalars().all()]

    async def add_note(self, task_id: int, title: str, content: str = "") -> TaskNote:
        note = TaskNote(task_id=task_id, title=title, content=content)
        session = await self._get_session()
        async with session:
            await self._require_task(session, task_id)
            model = TaskNoteModel(
                task_id=task_id,
                title=note.title,
                content=note.content,
                created_at=note.created_at,
                updated_at=note.updated_at,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return TaskNote.model_validate(model)

    async def update_note(self, note_id: int, title: Optional[str] = None,
                          content: Optional[str] = None) -> TaskNote:
        """Change a note's title and/or content; None leaves a field as it is"""
        session = await self._get_session()
        async with session:
            result = await session.execute(select(TaskNoteModel).where(TaskNoteModel.id == note_id))
            model = result.scalar_one_or_none()
            if model is None:
                raise ValueError(f"Note {note_id} not found")

            fields = TaskNote.model_validate(model).model_dump()
            if title is not None:
                fields["title"] = title
            if content is not None:
                fields["content"] = content
            updated = TaskNote(**fields)

            model.title = updated.title
            model.content = updated.content
            model.updated_at = datetime.now()
            await session.commit()
            return TaskNote.model_validate(model)

    async def get_notes(self, task_id: int) -> List[TaskNote]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskNoteModel)
                .where(TaskNoteModel.task_id == task_id)
                .order_by(TaskNoteModel.updated_at.desc(), TaskNoteModel.id.desc())
            )
            return [TaskNote.model_validate(m) for m in result.scalars().all()]

    async def add_tag(self, task_id: int, tag: str) -> None:
        """Tag a task; adding a tag it already has does nothing"""
        tag = TaskTag(task_id=task_id, tag=tag.strip()).tag
        session = await self._get_session()
        async with session:
            await self._require_task(session, task_id)
            result = await session.execute(
                select(TaskTagModel.id).where(TaskTagModel.task_id == task_id, TaskTagModel.tag == tag)
            )
            if result.scalar_one_or_none() is not None:
                return
            session.add(TaskTagModel(task_id=task_id, tag=tag))
            await session.commit()

    async def remove_tag(self, task_id: int, tag: str) -> None:
        session = await self._get_session()
        async with session:
            await session.execute(
                delete(TaskTagModel).where(TaskTagModel.task_id == task_id, TaskTagModel.tag == tag)
            )
            await session.commit()

    async def get_tags(self, task_id: int) -> List[str]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskTagModel.tag)
                .where(TaskTagModel.task_id == task_id)
                .order_by(TaskTagModel.created_at, TaskTagModel.id)
            )
            return list(result.scalars().all())
