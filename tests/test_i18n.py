"""
Tests for translation lookup and language switching.
"""

import pytest

from focustimer import i18n
from focustimer.i18n import tr, set_language, get_language, on_language_changed
from focustimer.i18n.translations import TRANSLATIONS


@pytest.fixture(autouse=True)
def english():
    set_language("en")
    yield
    set_language("en")


def test_korean_table_covers_english_keys():
    assert set(TRANSLATIONS["ko"]) == set(TRANSLATIONS["en"])


def test_format_arguments():
    assert tr("task.extend", minutes=3) == "+3 min"
    assert "Write docs" in tr("notify.timer_ended_body", title="Write docs")


def test_unknown_key_returns_key():
    assert tr("no.such.key") == "no.such.key"


def test_missing_format_argument_keeps_template():
    assert tr("task.extend", other=1) == TRANSLATIONS["en"]["task.extend"]


def test_unsupported_language_falls_back_to_english():
    set_language("fr")
    assert get_language() == "en"


def test_switch_notifies_listeners():
    seen = []
    on_language_changed(seen.append)
    try:
        set_language("ko")
        assert seen[-1] == "ko"
        assert tr("app.idle_title") == TRANSLATIONS["ko"]["app.idle_title"]
    finally:
        i18n._language_changed_callbacks.remove(seen.append)
