"""
Application event bus.

Architecture Decision: Observer Pattern (Qt Signals)
The tray-side countdown and the timer engines live in different layers and
must not import each other. The bus carries the one event that crosses that
boundary: the countdown reaching zero. Delivery is at-least-once from the
receiver's point of view, so receivers must be idempotent.
"""

from typing import Optional
from PySide6.QtCore import QObject, Signal


class EventBus(QObject):
    timer_ended = Signal()


_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the process-wide event bus"""
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus
