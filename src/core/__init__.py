# src/core/__init__.py
"""
Доменный слой подсистемы шаринга геолокации.
Бизнес-правила; хранилища и внешние сервисы передаются через конструкторы.
"""

from src.core.location import LocationIngestService, ProximityQueryEngine
from src.core.sharing import SharingPreferenceService
from src.core.notifications import LocationSharingNotifier, NotificationRateLimiter

__all__ = [
    "LocationIngestService",
    "ProximityQueryEngine",
    "SharingPreferenceService",
    "LocationSharingNotifier",
    "NotificationRateLimiter",
]
