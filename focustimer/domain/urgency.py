"""
Urgency classification.

Maps "fraction of time remaining" onto a discrete level and the colour
tokens the timer row uses for its background, border, glow and progress bar.
"""

from enum import Enum
from typing import NamedTuple


class UrgencyLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class UrgencyColors(NamedTuple):
    bg: str
    border: str
    glow: str
    progress: str


WARNING_THRESHOLD = 0.5
CRITICAL_THRESHOLD = 0.2

_COLORS = {
    UrgencyLevel.CRITICAL: UrgencyColors(
        bg="rgba(239, 68, 68, 0.1)",
        border="rgba(239, 68, 68, 0.3)",
        glow="rgba(239, 68, 68, 0.15)",
        progress="rgba(239, 68, 68, 0.4)",
    ),
    UrgencyLevel.WARNING: UrgencyColors(
        bg="rgba(251, 191, 36, 0.08)",
        border="rgba(251, 191, 36, 0.25)",
        glow="rgba(251, 191, 36, 0.1)",
        progress="rgba(251, 191, 36, 0.35)",
    ),
    UrgencyLevel.NORMAL: UrgencyColors(
        bg="rgba(255, 107, 0, 0.05)",
        border="rgba(255, 107, 0, 0.25)",
        glow="rgba(255, 107, 0, 0.1)",
        progress="rgba(255, 107, 0, 0.35)",
    ),
}

_STATUS_TEXT_KEYS = {
    UrgencyLevel.CRITICAL: "urgency.critical",
    UrgencyLevel.WARNING: "urgency.warning",
    UrgencyLevel.NORMAL: "urgency.normal",
}


def compute_progress(remaining_ms: float, total_ms: float) -> float:
    """
    Fraction of the total duration still remaining, clamped to [0, 1].

    1.0 means full time left, 0.0 means expired. A non-positive total has no
    time left by definition.
    """
    if total_ms <= 0:
        return 0.0
    return min(1.0, max(0.0, remaining_ms / total_ms))


def get_urgency_level(progress: float) -> UrgencyLevel:
    if progress > WARNING_THRESHOLD:
        return UrgencyLevel.NORMAL
    if progress > CRITICAL_THRESHOLD:
        return UrgencyLevel.WARNING
    return UrgencyLevel.CRITICAL


def get_urgency_colors(level: UrgencyLevel) -> UrgencyColors:
    return _COLORS[level]


def get_urgency_status_text(level: UrgencyLevel) -> str:
    """Translated short label for the level ("Started", "In progress", "Focus!")"""
    from focustimer.i18n import tr
    return tr(_STATUS_TEXT_KEYS[level])
