# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class SessionStatus(str, Enum):
    """Статусы сессии геолокации."""
    ACTIVE = "active"
    EXPIRED = "expired"


class SharingAction(str, Enum):
    """Действие пользователя с шарингом в группе."""
    STARTED = "started"
    STOPPED = "stopped"


class NearbyState(str, Enum):
    """Состояние отображения «кто рядом» на клиенте."""
    NOT_SHARING = "not_sharing"
    NOBODY_NEARBY = "nobody_nearby"
    HAS_NEARBY = "has_nearby"
    UNAVAILABLE = "unavailable"


# Заголовок с Telegram initData для идентификации пользователя
INIT_DATA_HEADER = "X-Telegram-Init-Data"

# Префикс ключей Redis для маркеров частоты уведомлений
RATE_LIMIT_KEY_PREFIX = "location_sharing_notified"
