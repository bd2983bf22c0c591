# src/core/sharing/__init__.py
"""
Домен настроек шаринга: кому и на каком событии видна позиция пользователя.
"""

from src.core.sharing.models import SharingPreference, PreferenceUpdate, PreferenceWriteResult
from src.core.sharing.repository import SharingPreferenceRepository
from src.core.sharing.service import SharingPreferenceService

__all__ = [
    "SharingPreference",
    "PreferenceUpdate",
    "PreferenceWriteResult",
    "SharingPreferenceRepository",
    "SharingPreferenceService",
]
