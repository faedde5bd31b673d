"""
Timer Service Client - async facade over the tray countdown.

Architecture Decision: failures are data, not exceptions
The countdown lives outside the task rows and may be unreachable. Each call
logs its failure and returns None/False, meaning "no authoritative update
this cycle"; callers keep their local interpolation as the fallback.
"""

import logging
from typing import Optional, Protocol, Tuple

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class TimerBackend(Protocol):
    """What the client needs from the countdown (see infra.tray_timer.TrayTimer)"""

    async def start(self, remaining_secs: int, task_title: str) -> None: ...

    async def stop(self, show_idle: bool = False) -> int: ...

    async def get_remaining(self) -> Tuple[int, bool, str]: ...

    async def sync(self, remaining_secs: int) -> None: ...

    async def show_frozen(self, remaining_secs: int, task_title: str) -> None: ...

    async def show_idle(self) -> None: ...


class TimerQuery(BaseModel):
    """Answer to query(): the service's remaining whole seconds, run state and label"""
    remaining_seconds: int
    is_running: bool
    label: Optional[str] = None


class TimerServiceClient:
    def __init__(self, backend: TimerBackend):
        self.backend = backend

    async def start(self, remaining_seconds: int, label: str) -> bool:
        try:
            await self.backend.start(remaining_seconds, label)
            return True
        except Exception as e:
            logger.warning(f"Timer service start failed: {e}")
            return False

    async def stop(self) -> Optional[int]:
        """Stop the countdown; returns its remaining seconds, or None if unreachable"""
        try:
            return int(await self.backend.stop())
        except Exception as e:
            logger.warning(f"Timer service stop failed: {e}")
            return None

    async def query(self) -> Optional[TimerQuery]:
        try:
            remaining, running, label = await self.backend.get_remaining()
            return TimerQuery(remaining_seconds=remaining, is_running=running, label=label or None)
        except Exception as e:
            logger.warning(f"Timer service query failed: {e}")
            return None

    async def sync(self, remaining_seconds: int) -> bool:
        try:
            await self.backend.sync(remaining_seconds)
            return True
        except Exception as e:
            logger.warning(f"Timer service sync failed: {e}")
            return False

    async def show_paused(self, remaining_seconds: int, label: str) -> bool:
        """Hand the tray label to a paused task"""
        try:
            await self.backend.show_frozen(remaining_seconds, label)
            return True
        except Exception as e:
            logger.warning(f"Timer service display update failed: {e}")
            return False

    async def show_idle(self) -> bool:
        try:
            await self.backend.show_idle()
            return True
        except Exception as e:
            logger.warning(f"Timer service display reset failed: {e}")
            return False
