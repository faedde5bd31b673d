"""
Tests for the tray countdown backend.
"""

import pytest

from focustimer.i18n import tr
from focustimer.infra.event_bus import EventBus
from focustimer.infra.tray_timer import TrayTimer


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def tray(bus):
    return TrayTimer(bus, title_max_length=12)


@pytest.mark.asyncio
async def test_start_shows_countdown(tray):
    titles = []
    tray.title_changed.connect(titles.append)

    await tray.start(90, "Write docs")

    assert await tray.get_remaining() == (90, True, "Write docs")
    assert titles == ["Write docs 01:30"]


@pytest.mark.asyncio
async def test_tick_counts_down_and_announces_end(tray, bus):
    ended = []
    bus.timer_ended.connect(lambda: ended.append(True))
    await tray.start(2, "Stretch")

    tray._on_tick()
    assert tray.remaining_secs == 1
    assert tray.title == "Stretch 00:01"
    assert ended == []

    tray._on_tick()
    assert await tray.get_remaining() == (0, False, "Stretch")
    assert tray.title == tr("app.idle_title")
    assert ended == [True]

    # Nothing left to count
    tray._on_tick()
    assert ended == [True]


@pytest.mark.asyncio
async def test_stop_freezes_label(tray):
    await tray.start(61, "Review")
    tray._on_tick()

    remaining = await tray.stop()

    assert remaining == 60
    assert tray.is_running is False
    assert tray.title == "Review 01:00"
    tray._on_tick()
    assert tray.remaining_secs == 60


@pytest.mark.asyncio
async def test_stop_can_show_idle(tray):
    await tray.start(61, "Review")
    await tray.stop(show_idle=True)
    assert tray.title == tr("app.idle_title")


@pytest.mark.asyncio
async def test_sync_moves_running_countdown(tray):
    await tray.start(100, "Plan")
    await tray.sync(400)
    assert await tray.get_remaining() == (400, True, "Plan")
    assert tray.title == "Plan 06:40"


@pytest.mark.asyncio
async def test_show_frozen_and_idle(tray):
    await tray.start(100, "Plan")
    await tray.show_frozen(42, "Other task")
    assert await tray.get_remaining() == (42, False, "Other task")
    assert tray.title == "Other task 00:42"

    await tray.show_idle()
    assert tray.is_running is False
    assert tray.title == tr("app.idle_title")
