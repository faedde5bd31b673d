"""
Timer Engine - per-task countdown kept in step with the tray countdown.

Architecture Decision: two clocks sharing one anchor (Qt Signals for output)
The tray countdown is the long-lived authority but only reachable through
async calls and only precise to a whole second. The engine interpolates
locally from an anchor (clock reading, remaining ms) on a fast QTimer for a
smooth display, and a slow QTimer re-queries the tray and moves the anchor
to the tray's value when the two disagree beyond a tolerance. The engine
knows nothing about the UI; it emits signals when things change.
"""

import asyncio
import logging
import math
import time
from typing import Callable, Coroutine, NamedTuple, Optional, Protocol, Set

from PySide6.QtCore import QObject, QTimer, Qt, Signal

from focustimer.domain.models import Task, TaskStatus, StatusChange, TimeExtension, UserPreferences
from focustimer.domain.urgency import (
    UrgencyColors, UrgencyLevel, compute_progress, get_urgency_colors, get_urgency_level
)
from focustimer.i18n import tr
from focustimer.services.timer_client import TimerQuery, TimerServiceClient

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class TimerAnchor(NamedTuple):
    """Interpolation origin: remaining_ms was exact at clock() == started_at"""
    started_at: float
    remaining_ms: float


class TimerEngine(QObject):
    """
    Countdown for one task.

    raw_remaining_ms may go negative after a negative extension; the
    remaining_ms property is the value clamped for display.
    """

    # Signals
    tick = Signal(int)  # remaining ms, clamped at 0
    running_changed = Signal(bool)
    status_changed = Signal(object)  # StatusChange
    timer_ended = Signal()
    time_extended = Signal(object)  # TimeExtension

    def __init__(self, task: Task, client: TimerServiceClient,
                 notifier: Optional[Notifier] = None,
                 default_duration_seconds: Optional[int] = None,
                 preferences: Optional[UserPreferences] = None,
                 clock: Callable[[], float] = time.monotonic,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__()
        prefs = preferences or UserPreferences()
        self.task = task
        self.client = client
        self.notifier = notifier
        self.clock = clock
        self.loop = loop
        self.sync_tolerance_ms = prefs.sync_tolerance_ms

        self._duration_override = default_duration_seconds is not None
        if self._duration_override:
            self.total_seconds = int(default_duration_seconds)
        else:
            self.total_seconds = task.expected_duration_seconds

        self.is_running = False
        self._in_progress = False
        self._anchor: Optional[TimerAnchor] = None
        self._paused_remaining_ms: Optional[float] = None
        self._persisted_remaining_ms: Optional[float] = None
        self._ended = False
        self._generation = 0

        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()
        self._sync_task: Optional[asyncio.Task] = None

        # A running task's snapshot is stale by definition; the tray has the real value
        snapshot = task.remaining_time_seconds
        if snapshot is not None and snapshot > 0 and not task.is_in_progress:
            self._persisted_remaining_ms = snapshot * 1000.0
            self.raw_remaining_ms = snapshot * 1000.0
        else:
            self.raw_remaining_ms = self.total_seconds * 1000.0

        self.fast_timer = QTimer(self)
        self.fast_timer.setTimerType(Qt.PreciseTimer)
        self.fast_timer.setInterval(prefs.fast_tick_ms)
        self.fast_timer.timeout.connect(self._on_fast_tick)

        self.sync_timer = QTimer(self)
        self.sync_timer.setInterval(prefs.sync_tick_ms)
        self.sync_timer.timeout.connect(self._on_sync_tick)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def remaining_ms(self) -> float:
        return max(0.0, self.raw_remaining_ms)

    @property
    def total_ms(self) -> float:
        return self.total_seconds * 1000.0

    @property
    def progress(self) -> float:
        return compute_progress(self.remaining_ms, self.total_ms)

    @property
    def urgency_level(self) -> UrgencyLevel:
        return get_urgency_level(self.progress)

    @property
    def urgency_colors(self) -> UrgencyColors:
        return get_urgency_colors(self.urgency_level)

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def has_ended(self) -> bool:
        return self._ended

    def snapshot_remaining_seconds(self) -> int:
        """Current remaining time in whole seconds, rounded down"""
        if self.is_running:
            return int(self._interpolate() // 1000)
        return int(self.remaining_ms // 1000)

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    async def play(self, emit_status: bool = True) -> None:
        """Start (or resume) the countdown and hand it to the tray"""
        async with self._lock:
            if self.is_running:
                return

            resume_ms = self._resolve_resume_ms()
            self._persisted_remaining_ms = None
            self._paused_remaining_ms = None
            self._set_anchor(resume_ms)
            self._ended = False
            self._in_progress = True

            await self.client.start(math.ceil(resume_ms / 1000), self.task.title)

            self.is_running = True
            self._start_ticking()
            self.tick.emit(int(self.remaining_ms))
            self.running_changed.emit(True)
            logger.debug(f"Task {self.task.id} playing from {resume_ms:.0f} ms")

            if emit_status:
                self.status_changed.emit(StatusChange(task_id=self.task.id, status=TaskStatus.IN_PROGRESS))

    async def pause(self, emit_status: bool = True) -> Optional[int]:
        """
        Stop the countdown and return the committed remaining seconds.

        The committed value is the smaller of the local and tray readings,
        rounded down; None if the timer was not running.
        """
        async with self._lock:
            if not self.is_running:
                return None

            local_ms = self._interpolate()
            self._stop_ticking()
            self.is_running = False
            self._in_progress = False

            service_seconds = await self.client.stop()
            if service_seconds is None:
                final_ms = local_ms
            else:
                final_ms = min(local_ms, service_seconds * 1000.0)

            self.raw_remaining_ms = final_ms
            self._paused_remaining_ms = final_ms
            remaining_seconds = int(final_ms // 1000)

            self.tick.emit(int(final_ms))
            self.running_changed.emit(False)

            if emit_status:
                self.status_changed.emit(StatusChange(
                    task_id=self.task.id,
                    status=TaskStatus.PAUSED,
                    remaining_time_seconds=remaining_seconds,
                ))
            return remaining_seconds

    async def extend(self, added_minutes: int, reason: Optional[str] = None) -> Optional[TimeExtension]:
        """
        Add minutes to the countdown right away; a running tray is synced to match.

        Negative values are accepted as long as the task keeps at least one
        minute of expected duration; otherwise nothing changes and None is
        returned. Remaining time may still go below zero, in which case the
        display clamps but raw_remaining_ms keeps the true value.
        """
        async with self._lock:
            previous_duration = self.task.expected_duration_minutes
            new_duration = previous_duration + added_minutes
            if new_duration < 1:
                logger.warning(
                    f"Extension of {added_minutes} min for task {self.task.id} refused: "
                    f"duration would be {new_duration} min"
                )
                return None

            delta_ms = added_minutes * 60000.0
            if self.is_running and self._anchor is not None:
                self._set_anchor(self._interpolate_raw() + delta_ms)
            else:
                self.raw_remaining_ms += delta_ms
                if self._paused_remaining_ms is not None:
                    self._paused_remaining_ms += delta_ms
                if self._persisted_remaining_ms is not None:
                    self._persisted_remaining_ms += delta_ms

            self.total_seconds += added_minutes * 60
            self.task.expected_duration_minutes = new_duration
            if self.raw_remaining_ms > 0:
                self._ended = False

            extension = TimeExtension(
                task_id=self.task.id,
                added_minutes=added_minutes,
                previous_duration=previous_duration,
                new_duration=new_duration,
                reason=reason,
            )
            self.tick.emit(int(self.remaining_ms))
            self.time_extended.emit(extension)

            if self.is_running:
                await self.client.sync(math.ceil(self.remaining_ms / 1000))
            return extension

    async def quick_extend(self, minutes: int) -> Optional[TimeExtension]:
        """Preset extension (1/3/5 minutes in the task row); same as extend()"""
        return await self.extend(minutes)

    # ------------------------------------------------------------------
    # Reconciliation with the tray
    # ------------------------------------------------------------------

    async def reconcile(self) -> bool:
        """
        Compare the local interpolation with the tray and let the tray win
        beyond tolerance. Returns True when the anchor was moved.
        """
        if not self.is_running:
            return False

        generation = self._generation
        result = await self.client.query()
        if result is None or generation != self._generation or not self.is_running:
            return False
        if self._owned_by_other(result):
            logger.debug(f"Tray counts for '{result.label}', not task {self.task.id}; skipping sync")
            return False

        local_ms = self._interpolate()
        service_ms = result.remaining_seconds * 1000.0

        if not result.is_running:
            if result.remaining_seconds <= 0 and local_ms <= self.sync_tolerance_ms:
                self.handle_timer_ended()
            else:
                logger.warning(
                    f"Tray countdown idle while task {self.task.id} runs; keeping local time"
                )
            return False

        if abs(service_ms - local_ms) <= self.sync_tolerance_ms:
            return False

        logger.info(
            f"Task {self.task.id} drifted: local {local_ms:.0f} ms, tray {service_ms:.0f} ms; using tray"
        )
        self._set_anchor(service_ms)
        self.tick.emit(int(self.remaining_ms))
        return True

    async def recover(self) -> None:
        """Re-read the tray after the window regains focus or visibility"""
        if not (self.is_running or self._in_progress):
            return

        generation = self._generation
        result = await self.client.query()
        if result is None or generation != self._generation or self._owned_by_other(result):
            return

        service_ms = result.remaining_seconds * 1000.0
        if result.is_running:
            self._set_anchor(service_ms)
            if not self.is_running:
                self.is_running = True
                self._ended = False
                self._start_ticking()
                self.running_changed.emit(True)
            self.tick.emit(int(self.remaining_ms))
            return

        was_running = self.is_running
        self._stop_ticking()
        self.is_running = False
        self.raw_remaining_ms = service_ms
        self.tick.emit(int(self.remaining_ms))
        if was_running:
            self.running_changed.emit(False)
            if service_ms <= 0:
                self._raise_timer_ended()

    def handle_timer_ended(self) -> None:
        """
        Slot for the tray's "timer ended" event.

        Safe to call repeatedly: only the first call after the countdown
        last had time left has any effect.
        """
        if self._ended:
            return
        if not (self.is_running or self._in_progress):
            return

        was_running = self.is_running
        self._stop_ticking()
        self.is_running = False
        self.raw_remaining_ms = 0.0
        self._paused_remaining_ms = None
        self.tick.emit(0)
        if was_running:
            self.running_changed.emit(False)
        self._raise_timer_ended()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_in_progress(self, in_progress: bool) -> None:
        """
        Follow the persisted status.

        Leaving IN_PROGRESS freezes the local value and clears both loops;
        entering it starts from scratch, from the tray if it is counting.
        """
        if in_progress == self._in_progress:
            return
        self._in_progress = in_progress

        if in_progress:
            if not self.is_running:
                self._spawn(self._resume_in_progress())
            return

        if self.is_running:
            frozen_ms = self._interpolate()
            self.raw_remaining_ms = frozen_ms
            self._paused_remaining_ms = frozen_ms
            self.is_running = False
            self._stop_ticking()
            self.tick.emit(int(frozen_ms))
            self.running_changed.emit(False)
        else:
            self._stop_ticking()

    def update_task(self, task: Task) -> None:
        """Take a refreshed copy of the task record"""
        self.task = task
        if task.status == TaskStatus.COMPLETED:
            # Completion forces zero, whatever the countdown still showed
            was_running = self.is_running
            self._in_progress = False
            self.is_running = False
            self._stop_ticking()
            self.raw_remaining_ms = 0.0
            self._paused_remaining_ms = None
            self._persisted_remaining_ms = None
            self.tick.emit(0)
            if was_running:
                self.running_changed.emit(False)
        if not self._duration_override and not self.is_running:
            self.total_seconds = task.expected_duration_seconds

    def shutdown(self) -> None:
        """Stop all periodic and pending work; the engine is not reused afterwards"""
        self._stop_ticking()
        self.is_running = False
        for pending in list(self._pending):
            pending.cancel()
        self._pending.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_resume_ms(self) -> float:
        total_ms = self.total_ms
        snapshot = self._persisted_remaining_ms
        if snapshot is not None and 0 < snapshot <= total_ms:
            return snapshot
        if self._paused_remaining_ms is not None and self._paused_remaining_ms > 0:
            return self._paused_remaining_ms
        if self.raw_remaining_ms > 0:
            return self.raw_remaining_ms
        return total_ms

    def _owned_by_other(self, result: TimerQuery) -> bool:
        return result.label is not None and result.label != self.task.title

    def _set_anchor(self, remaining_ms: float):
        self._anchor = TimerAnchor(self.clock(), remaining_ms)
        self.raw_remaining_ms = remaining_ms
        self._generation += 1

    def _interpolate_raw(self) -> float:
        if self._anchor is None:
            return self.raw_remaining_ms
        elapsed_ms = (self.clock() - self._anchor.started_at) * 1000.0
        return self._anchor.remaining_ms - elapsed_ms

    def _interpolate(self) -> float:
        return max(0.0, self._interpolate_raw())

    def _start_ticking(self):
        self.fast_timer.start()
        self.sync_timer.start()

    def _stop_ticking(self):
        self.fast_timer.stop()
        self.sync_timer.stop()
        self._anchor = None
        self._generation += 1

    def _on_fast_tick(self):
        """Recompute remaining time from the anchor; never suspends"""
        if not self.is_running or self._anchor is None:
            return

        raw = self._interpolate_raw()
        self.raw_remaining_ms = max(0.0, raw)
        self.tick.emit(int(self.raw_remaining_ms))

        if raw <= 0:
            self._expire()

    def _on_sync_tick(self):
        if not self.is_running:
            return
        # One query in flight at a time; the fast tick carries on meanwhile
        if self._sync_task is not None and not self._sync_task.done():
            return
        self._sync_task = self._spawn(self.reconcile())

    def _expire(self):
        anchor_ms = self._anchor.remaining_ms if self._anchor is not None else 0.0
        self._stop_ticking()
        self.is_running = False
        self.raw_remaining_ms = min(0.0, anchor_ms)
        self._paused_remaining_ms = None
        self.running_changed.emit(False)
        self._spawn(self.client.stop())
        self._raise_timer_ended()

    def _raise_timer_ended(self):
        if self._ended:
            return
        self._ended = True
        logger.info(f"Timer for task {self.task.id} ended")
        self.timer_ended.emit()

        if self.notifier is not None:
            try:
                self.notifier.notify(
                    tr("notify.timer_ended_title"),
                    tr("notify.timer_ended_body", title=self.task.title),
                )
            except Exception as e:
                logger.warning(f"Timer-ended notification failed: {e}")

    async def _resume_in_progress(self):
        generation = self._generation
        result = await self.client.query()
        if not self._in_progress or self.is_running or generation != self._generation:
            return

        if result is not None and result.is_running and not self._owned_by_other(result):
            self._set_anchor(result.remaining_seconds * 1000.0)
            self._ended = False
            self.is_running = True
            self._start_ticking()
            self.tick.emit(int(self.remaining_ms))
            self.running_changed.emit(True)
        else:
            await self.play(emit_status=False)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        loop = self.loop or asyncio.get_running_loop()
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_spawned_done)
        return task

    def _on_spawned_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Timer task for {self.task.id} failed: {task.exception()}")
