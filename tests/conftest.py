"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from PySide6.QtCore import QCoreApplication

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from focustimer.infra.db import Base
from focustimer.infra.repository import TaskRepository
from tests.fakes import FakeClock, FakeTimerBackend, FakeNotifier, FakeTaskStore


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """QObjects and QTimers need an application instance; no event loop is run"""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def repository(db_session):
    return TaskRepository(db_session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return FakeTimerBackend()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def store():
    return FakeTaskStore()
