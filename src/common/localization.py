# src/common/localization.py
"""
Модуль локализации.
Загружает тексты уведомлений из config/lang_dict.json.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

# Язык, если настройки недоступны
FALLBACK_LANGUAGE = "en"


def get_lang_dict_path() -> Path:
    """Возвращает путь к файлу локализации."""
    return Path(__file__).parent.parent.parent / "config" / "lang_dict.json"


@lru_cache()
def load_lang_dict() -> dict[str, dict[str, str]]:
    """
    Загружает словарь локализации из JSON файла.
    Результат кэшируется.
    """
    lang_path = get_lang_dict_path()
    if not lang_path.exists():
        raise FileNotFoundError(f"Файл локализации не найден: {lang_path}")

    with open(lang_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _default_language() -> str:
    try:
        from src.config import settings
        return settings.domain.DEFAULT_LANGUAGE
    except Exception:
        return FALLBACK_LANGUAGE


def resolve_language(lang: str | None) -> str:
    """
    Приводит код языка клиента (например, 'en-US') к поддерживаемому.
    Неизвестные языки заменяются языком по умолчанию.
    """
    default = _default_language()
    if not lang:
        return default

    short = lang.split("-")[0].split("_")[0].lower()
    try:
        from src.config import settings
        supported = settings.domain.SUPPORTED_LANGUAGES
    except Exception:
        supported = [default]

    return short if short in supported else default


def get_text(
    key: str,
    lang: str | None = None,
    default: str | None = None,
    **kwargs: Any,
) -> str:
    """
    Получает локализованный текст по ключу.

    Args:
        key: Ключ перевода
        lang: Код языка (de, en, ru); None означает язык по умолчанию
        default: Значение, если ключ не найден
        **kwargs: Параметры для форматирования строки

    Example:
        >>> get_text("LOCATION_SHARING_STARTED", "en", sharer_name="Anna", group_name="Crew")
        "📍 Anna started sharing their location with Crew"
    """
    try:
        lang_dict = load_lang_dict()
    except FileNotFoundError:
        return default if default else f"[{key}]"

    translations = lang_dict.get(key)
    if not translations:
        return default if default else f"[{key}]"

    text = (
        translations.get(resolve_language(lang))
        or translations.get(_default_language())
        or translations.get(FALLBACK_LANGUAGE)
        or next(iter(translations.values()), f"[{key}]")
    )

    if kwargs:
        try:
            text = text.format(**kwargs)
        except KeyError:
            pass  # Не все плейсхолдеры переданы: отдаём шаблон как есть

    return text
