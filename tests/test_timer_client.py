"""
Tests for the tray countdown client: failures become None/False, never raise.
"""

import pytest

from focustimer.services.timer_client import TimerServiceClient, TimerQuery


@pytest.mark.asyncio
async def test_calls_pass_through(backend):
    client = TimerServiceClient(backend)

    assert await client.start(120, "Write docs") is True
    assert await client.query() == TimerQuery(remaining_seconds=120, is_running=True, label="Write docs")
    assert await client.sync(90) is True
    assert await client.stop() == 90
    assert await client.show_paused(45, "Other") is True
    assert await client.show_idle() is True
    assert backend.names() == ["start", "sync", "stop", "show_frozen", "show_idle"]


@pytest.mark.asyncio
async def test_unreachable_service_yields_sentinels(backend):
    backend.fail = True
    client = TimerServiceClient(backend)

    assert await client.start(120, "Write docs") is False
    assert await client.stop() is None
    assert await client.query() is None
    assert await client.sync(10) is False
    assert await client.show_paused(10, "x") is False
    assert await client.show_idle() is False
