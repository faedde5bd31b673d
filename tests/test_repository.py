"""
Tests for TaskRepository against an in-memory SQLite database.
"""

import json
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from focustimer.domain.models import Task, TaskStatus, TaskUpdate, TimeExtension, ActionType, RunEndType


@pytest.mark.asyncio
async def test_create_and_get(repository):
    created = await repository.create(Task(title="Write docs", expected_duration_minutes=25))

    assert created.id is not None
    fetched = await repository.get_by_id(created.id)
    assert fetched.title == "Write docs"
    assert fetched.status == TaskStatus.INBOX
    assert fetched.remaining_time_seconds is None
    assert await repository.get_by_id(9999) is None


@pytest.mark.asyncio
async def test_list_orders_important_then_newest(repository):
    now = datetime.now()
    old = await repository.create(Task(title="Old", created_at=now - timedelta(days=1)))
    new = await repository.create(Task(title="New", created_at=now))
    important = await repository.create(Task(title="Urgent", is_important=True, created_at=now - timedelta(days=2)))

    tasks = await repository.list_tasks()

    assert [t.id for t in tasks] == [important.id, new.id, old.id]


@pytest.mark.asyncio
async def test_list_filters_by_status(repository):
    a = await repository.create(Task(title="A"))
    await repository.create(Task(title="B"))
    await repository.update_task(TaskUpdate(id=a.id, status=TaskStatus.COMPLETED))

    completed = await repository.list_tasks(TaskStatus.COMPLETED)

    assert [t.id for t in completed] == [a.id]


@pytest.mark.asyncio
async def test_partial_update_only_touches_given_fields(repository):
    created = await repository.create(Task(title="Write docs", is_important=True))
    paused_at = datetime(2026, 3, 2, 10, 0)

    await repository.update_task(TaskUpdate(
        id=created.id, status=TaskStatus.IN_PROGRESS,
    ))
    await repository.update_task(TaskUpdate(
        id=created.id, status=TaskStatus.PAUSED, remaining_time_seconds=180, last_paused_at=paused_at,
    ))

    task = await repository.get_by_id(created.id)
    assert task.status == TaskStatus.PAUSED
    assert task.remaining_time_seconds == 180
    assert task.last_paused_at == paused_at
    assert task.is_important is True
    assert task.title == "Write docs"


@pytest.mark.asyncio
async def test_explicit_none_clears_field(repository):
    created = await repository.create(Task(title="Done"))
    await repository.update_task(TaskUpdate(id=created.id, status=TaskStatus.COMPLETED, completed_at=datetime.now()))

    await repository.update_task(TaskUpdate(id=created.id, status=TaskStatus.INBOX, completed_at=None))

    task = await repository.get_by_id(created.id)
    assert task.status == TaskStatus.INBOX
    assert task.completed_at is None


@pytest.mark.asyncio
async def test_update_missing_task_raises(repository):
    with pytest.raises(ValueError):
        await repository.update_task(TaskUpdate(id=424242, status=TaskStatus.COMPLETED))


@pytest.mark.asyncio
async def test_status_changes_are_audited(repository):
    created = await repository.create(Task(title="Audit me"))

    await repository.update_task(TaskUpdate(id=created.id, status=TaskStatus.IN_PROGRESS))
    await repository.update_task(TaskUpdate(id=created.id, remaining_time_seconds=10))
    await repository.update_task(TaskUpdate(id=created.id, status=TaskStatus.PAUSED, remaining_time_seconds=5))

    actions = await repository.get_action_history(created.id)

    assert sorted(a.action_type for a in actions) == sorted([ActionType.STARTED, ActionType.PAUSED])
    started = next(a for a in actions if a.action_type == ActionType.STARTED)
    assert started.previous_status == "INBOX"
    assert started.new_status == "IN_PROGRESS"


@pytest.mark.asyncio
async def test_time_extension_updates_duration(repository):
    created = await repository.create(Task(title="Extend me", expected_duration_minutes=5))

    saved = await repository.add_time_extension(TimeExtension(
        task_id=created.id, added_minutes=5, previous_duration=5, new_duration=10, reason="quick",
    ))

    assert saved.id is not None
    task = await repository.get_by_id(created.id)
    assert task.expected_duration_minutes == 10
    assert [e.added_minutes for e in await repository.get_time_extensions(created.id)] == [5]

    actions = await repository.get_action_history(created.id)
    assert actions[0].action_type == ActionType.TIME_EXTENDED
    assert json.loads(actions[0].metadata_json) == {"addedMinutes": 5, "previousDuration": 5, "newDuration": 10}


@pytest.mark.asyncio
async def test_extension_for_missing_task_raises(repository):
    with pytest.raises(ValueError):
        await repository.add_time_extension(TimeExtension(
            task_id=777, added_minutes=1, previous_duration=5, new_duration=6,
        ))


@pytest.mark.asyncio
async def test_extension_to_zero_minutes_is_refused(repository):
    created = await repository.create(Task(title="Short", expected_duration_minutes=5))

    with pytest.raises(ValueError):
        await repository.add_time_extension(
            TimeExtension(task_id=created.id, added_minutes=-5, previous_duration=5, new_duration=0)
        )

    # The task stays readable
    tasks = await repository.list_tasks()
    assert [t.expected_duration_minutes for t in tasks] == [5]
    assert await repository.get_time_extensions(created.id) == []

@pytest.mark.asyncio
async def test_run_history(repository):
    created = await repository.create(Task(title="Run me"))
    started = datetime(2026, 3, 2, 9, 0)

    run = await repository.start_run(created.id, started)
    assert run.end_type == RunEndType.RUNNING

    ended = await repository.end_open_run(created.id, RunEndType.PAUSED, started + timedelta(minutes=3))
    assert ended.duration_seconds == 180
    assert ended.end_type == RunEndType.PAUSED

    # Nothing left open
    assert await repository.end_open_run(created.id, RunEndType.COMPLETED) is None
    assert len(await repository.get_run_history(created.id)) == 1


@pytest.mark.asyncio
async def test_delete_removes_history(repository):
    created = await repository.create(Task(title="Delete me"))
    await repository.start_run(created.id)
    await repository.update_task(TaskUpdate(id=created.id, status=TaskStatus.ARCHIVED))
    await repository.add_memo(created.id, "gone soon")
    await repository.add_note(created.id, "Plan", "steps")
    await repository.add_tag(created.id, "work")

    await repository.delete(created.id)

    assert await repository.get_by_id(created.id) is None
    assert await repository.get_run_history(created.id) == []
    assert await repository.get_action_history(created.id) == []
    assert await repository.get_memos(created.id) == []
    assert await repository.get_notes(created.id) == []
    assert await repository.get_tags(created.id) == []


@pytest.mark.asyncio
async def test_memos_newest_first(repository):
    created = await repository.create(Task(title="Call back"))
    first = await repository.add_memo(created.id, "left a voicemail")
    second = await repository.add_memo(created.id, "try after lunch")

    memos = await repository.get_memos(created.id)

    assert [m.id for m in memos] == [second.id, first.id]
    assert memos[0].content == "try after lunch"


@pytest.mark.asyncio
async def test_empty_memo_is_rejected(repository):
    created = await repository.create(Task(title="Call back"))
    with pytest.raises(ValidationError):
        await repository.add_memo(created.id, "")


@pytest.mark.asyncio
async def test_memo_for_missing_task_raises(repository):
    with pytest.raises(ValueError):
        await repository.add_memo(9999, "orphan")


@pytest.mark.asyncio
async def test_note_update_changes_only_given_fields(repository):
    created = await repository.create(Task(title="Design review"))
    note = await repository.add_note(created.id, "Agenda", "1. scope")

    updated = await repository.update_note(note.id, content="1. scope\n2. risks")

    assert updated.title == "Agenda"
    assert updated.content == "1. scope\n2. risks"
    assert updated.updated_at >= note.updated_at
    assert [n.content for n in await repository.get_notes(created.id)] == ["1. scope\n2. risks"]


@pytest.mark.asyncio
async def test_update_missing_note_raises(repository):
    with pytest.raises(ValueError):
        await repository.update_note(9999, title="Nothing")


@pytest.mark.asyncio
async def test_tags_are_unique_per_task(repository):
    created = await repository.create(Task(title="Refactor"))
    other = await repository.create(Task(title="Deploy"))

    await repository.add_tag(created.id, "work")
    await repository.add_tag(created.id, " work ")
    await repository.add_tag(created.id, "deep")
    await repository.add_tag(other.id, "work")

    assert await repository.get_tags(created.id) == ["work", "deep"]

    await repository.remove_tag(created.id, "work")
    await repository.remove_tag(created.id, "never-added")

    assert await repository.get_tags(created.id) == ["deep"]
    assert await repository.get_tags(other.id) == ["work"]
