# -*- coding: utf-8 -*-
"""
Internationalization (i18n) for FocusTimer.

English is the reference table; Korean entries fall back to it key by key.
'auto' picks Korean on a Korean system locale and English everywhere else.
"""

import locale
import logging
from typing import Callable, Dict, List, Tuple
from PySide6.QtCore import QLocale

from focustimer.i18n.translations import TRANSLATIONS

logger = logging.getLogger(__name__)

FALLBACK_LANGUAGE = "en"

# code -> (display name, Qt language)
_LANGUAGES: Dict[str, Tuple[str, QLocale.Language]] = {
    "en": ("English", QLocale.English),
    "ko": ("한국어", QLocale.Korean),
}
SUPPORTED_LANGUAGES = list(_LANGUAGES)

_current_language = FALLBACK_LANGUAGE
_language_changed_callbacks: List[Callable[[str], None]] = []


def detect_system_language() -> str:
    """Supported language code matching the system locale"""
    system_locale = locale.getlocale()[0] or QLocale.system().name()
    prefix = (system_locale or "").lower()[:2]
    return prefix if prefix in _LANGUAGES else FALLBACK_LANGUAGE


def get_language() -> str:
    return _current_language


def set_language(lang: str) -> None:
    """
    Switch the UI language and notify listeners.

    Args:
        lang: 'en', 'ko' or 'auto'; anything else means English.
    """
    global _current_language
    if lang == 'auto':
        lang = detect_system_language()
    if lang not in _LANGUAGES:
        logger.info(f"Unsupported language '{lang}', using {FALLBACK_LANGUAGE}")
        lang = FALLBACK_LANGUAGE
    _current_language = lang
    QLocale.setDefault(QLocale(_LANGUAGES[lang][1]))

    for callback in list(_language_changed_callbacks):
        try:
            callback(lang)
        except Exception as e:
            logger.warning(f"Language change callback failed: {e}")


def tr(key: str, **kwargs) -> str:
    """
    Translated text for key, formatted with kwargs.

    Missing keys fall back to English, then to the key itself.
    """
    text = TRANSLATIONS[_current_language].get(key)
    if text is None:
        text = TRANSLATIONS[FALLBACK_LANGUAGE].get(key, key)

    if kwargs:
        try:
            text = text.format(**kwargs)
        except (KeyError, ValueError) as e:
            logger.debug(f"Could not format '{key}': {e}")

    return text


def on_language_changed(callback: Callable[[str], None]) -> None:
    if callback not in _language_changed_callbacks:
        _language_changed_callbacks.append(callback)

