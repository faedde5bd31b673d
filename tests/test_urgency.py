"""
Tests for urgency classification and the countdown formatters.
"""

import pytest

from focustimer.domain.urgency import (
    UrgencyLevel, compute_progress, get_urgency_level, get_urgency_colors, get_urgency_status_text
)
from focustimer.i18n import set_language
from focustimer.utils import format_time, format_time_ms, format_tray_title


class TestProgress:
    def test_fraction_remaining(self):
        assert compute_progress(150_000, 300_000) == 0.5

    def test_clamped_to_unit_interval(self):
        assert compute_progress(-5_000, 300_000) == 0.0
        assert compute_progress(400_000, 300_000) == 1.0

    def test_zero_total_has_no_time_left(self):
        assert compute_progress(1_000, 0) == 0.0
        assert compute_progress(0, -10) == 0.0


class TestUrgencyLevel:
    @pytest.mark.parametrize("progress,expected", [
        (1.0, UrgencyLevel.NORMAL),
        (0.51, UrgencyLevel.NORMAL),
        (0.5, UrgencyLevel.WARNING),
        (0.21, UrgencyLevel.WARNING),
        (0.2, UrgencyLevel.CRITICAL),
        (0.0, UrgencyLevel.CRITICAL),
    ])
    def test_thresholds(self, progress, expected):
        assert get_urgency_level(progress) == expected

    def test_level_never_improves_as_time_runs_out(self):
        order = [UrgencyLevel.NORMAL, UrgencyLevel.WARNING, UrgencyLevel.CRITICAL]
        levels = [get_urgency_level(p / 100) for p in range(100, -1, -1)]
        ranks = [order.index(level) for level in levels]
        assert ranks == sorted(ranks)

    def test_each_level_has_distinct_colors(self):
        colors = {level: get_urgency_colors(level) for level in UrgencyLevel}
        assert len({c.progress for c in colors.values()}) == 3
        assert colors[UrgencyLevel.CRITICAL].bg.startswith("rgba(239, 68, 68")

    def test_status_text_is_translated(self):
        set_language("en")
        assert get_urgency_status_text(UrgencyLevel.CRITICAL) == "Focus!"
        set_language("ko")
        try:
            assert get_urgency_status_text(UrgencyLevel.CRITICAL) != "Focus!"
        finally:
            set_language("en")


class TestFormatting:
    def test_format_time(self):
        assert format_time(0) == "0:00"
        assert format_time(65) == "1:05"
        assert format_time(-3) == "0:00"

    def test_format_time_ms(self):
        assert format_time_ms(61_234) == "01:01.23"
        assert format_time_ms(-1) == "00:00.00"

    def test_tray_title_truncates_long_titles(self):
        assert format_tray_title(90, "Write release notes", 12) == "Write releas… 01:30"
        assert format_tray_title(90, "Short", 12) == "Short 01:30"

    def test_tray_title_without_task(self):
        assert format_tray_title(5) == "⏱ 00:05"
