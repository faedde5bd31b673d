"""
Data Seeder for FocusTimer.
Populates the database with a handful of tasks in every status for demos.
"""

import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from focustimer.domain.models import Task, TaskStatus, TaskUpdate, RunEndType
from focustimer.infra.config import get_settings
from focustimer.infra.db import init_db, get_engine
from focustimer.infra.repository import TaskRepository


async def reset_database():
    """Delete the existing database file to ensure a fresh seed"""
    db_path = get_settings().data_dir / 'focustimer.db'
    if db_path.exists():
        print(f"Removing existing database at: {db_path}")
        try:
            db_path.unlink()
            print("Database removed.")
        except PermissionError:
            print("ERROR: Could not remove database. It might be in use.")
            sys.exit(1)
    else:
        print(f"No existing database found at: {db_path}")


async def seed():
    await reset_database()
    print("Starting data seeding...")
    await init_db()

    repo = TaskRepository()
    now = datetime.now()

    inbox = [
        Task(title="Reply to review comments", expected_duration_minutes=10),
        Task(title="Write release notes", expected_duration_minutes=25, is_important=True),
        Task(title="Stretch", expected_duration_minutes=3),
    ]
    for task in inbox:
        created = await repo.create(task)
        print(f"Created task: {created.title}")

    # A task paused halfway through
    paused = await repo.create(Task(title="Fix flaky test", expected_duration_minutes=15))
    await repo.start_run(paused.id, now - timedelta(minutes=8))
    await repo.update_task(TaskUpdate(id=paused.id, status=TaskStatus.IN_PROGRESS, last_run_at=now - timedelta(minutes=8)))
    await repo.end_open_run(paused.id, RunEndType.PAUSED, now)
    await repo.update_task(TaskUpdate(
        id=paused.id, status=TaskStatus.PAUSED, last_paused_at=now, remaining_time_seconds=7 * 60,
    ))
    print(f"Created paused task: {paused.title}")

    # A finished one
    done = await repo.create(Task(title="Morning planning", expected_duration_minutes=5))
    await repo.update_task(TaskUpdate(
        id=done.id, status=TaskStatus.COMPLETED, completed_at=now - timedelta(hours=2), remaining_time_seconds=0,
    ))
    print(f"Created completed task: {done.title}")

    await get_engine().dispose()
    print("\nSeeding complete.")


if __name__ == "__main__":
    asyncio.run(seed())
