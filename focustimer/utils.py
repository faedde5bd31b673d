import sys
from pathlib import Path
from typing import Optional


def get_resource_path(relative_path: str) -> Path:
    """
    Get absolute path to resource, works for dev and for PyInstaller.

    Args:
        relative_path: Relative path from project root (e.g., "focustimer/assets")

    Returns:
        Absolute Path object
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller creates a temp folder and stores path in _MEIPASS
        base_path = Path(sys._MEIPASS)
    else:
        # This file is in focustimer/utils.py, so project root is up two levels
        base_path = Path(__file__).parent.parent.absolute()

    return base_path / relative_path


def format_time(seconds: int) -> str:
    """Whole seconds as M:SS"""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


def format_time_ms(ms: float) -> str:
    """Milliseconds as MM:SS.cc (hundredths), used by the smooth countdown"""
    ms = max(0, int(ms))
    total_seconds, rest = divmod(ms, 1000)
    mins, secs = divmod(total_seconds, 60)
    return f"{mins:02d}:{secs:02d}.{rest // 10:02d}"


def format_tray_title(seconds: int, task_title: Optional[str] = None, max_length: int = 12) -> str:
    """
    Tray label for a countdown.

    "<title> MM:SS" with long titles cut to max_length characters plus an
    ellipsis, or "⏱ MM:SS" when there is no title.
    """
    mins, secs = divmod(max(0, int(seconds)), 60)
    time = f"{mins:02d}:{secs:02d}"
    if task_title:
        if len(task_title) > max_length:
            task_title = task_title[:max_length] + "…"
        return f"{task_title} {time}"
    return f"⏱ {time}"
