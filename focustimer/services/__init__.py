"""Services layer - Business logic"""

from .timer_client import TimerServiceClient, TimerQuery
from .timer_engine import TimerEngine
from .task_state_machine import TaskStatusStateMachine, TransitionOutcome

__all__ = [
    "TimerServiceClient", "TimerQuery", "TimerEngine",
    "TaskStatusStateMachine", "TransitionOutcome",
]
