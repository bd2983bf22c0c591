# src/services/location_sharing/dependencies.py
"""
Зависимости сервиса шаринга геолокации.
Инициализация ресурсов при старте и провайдеры для FastAPI Depends.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Header

from src.common.constants import INIT_DATA_HEADER, TypeMsg
from src.common.exceptions import UnauthenticatedError
from src.common.logger import log_info, log_warning
from src.core.groups.client import GroupDirectoryClient
from src.core.location.proximity import ProximityQueryEngine
from src.core.location.repository import LocationSessionRepository
from src.core.location.service import LocationIngestService
from src.core.notifications.rate_limiter import NotificationRateLimiter
from src.core.notifications.service import LocationSharingNotifier
from src.core.sharing.repository import SharingPreferenceRepository
from src.core.sharing.service import SharingPreferenceService
from src.infra.database import DatabaseManager
from src.infra.event_bus import EventBus
from src.infra.redis_client import RedisClient
from src.services.location_sharing.auth import TelegramAuthError, TelegramInitData, validate_init_data


# Глобальные экземпляры ресурсов
_db: Optional[DatabaseManager] = None
_redis: Optional[RedisClient] = None
_event_bus: Optional[EventBus] = None
_groups: Optional[GroupDirectoryClient] = None

# Сервисы
_ingest_service: Optional[LocationIngestService] = None
_proximity_engine: Optional[ProximityQueryEngine] = None
_preference_service: Optional[SharingPreferenceService] = None


def build_services(
    db: DatabaseManager,
    redis: RedisClient,
    event_bus: EventBus,
    groups: GroupDirectoryClient,
) -> tuple[LocationIngestService, ProximityQueryEngine, SharingPreferenceService]:
    """Собирает доменные сервисы из инфраструктуры по настройкам."""
    from src.config import settings

    sessions = LocationSessionRepository(db)
    preferences = SharingPreferenceRepository(db)

    notifier = LocationSharingNotifier(
        event_bus=event_bus,
        rate_limiter=NotificationRateLimiter(redis, settings.notifications.RATE_LIMIT_WINDOW_MINUTES),
        groups=groups,
        preferences=preferences,
        kind=settings.notifications.LOCATION_SHARING_KIND,
    )

    ingest = LocationIngestService(sessions, preferences, groups, ttl_hours=settings.location.SESSION_TTL_HOURS)
    proximity = ProximityQueryEngine(
        sessions,
        preferences,
        groups,
        min_radius=settings.location.MIN_RADIUS_METERS,
        max_radius=settings.location.MAX_RADIUS_METERS,
    )
    preference_service = SharingPreferenceService(preferences, groups, notifier)

    return ingest, proximity, preference_service


async def init_dependencies() -> None:
    """Подключает PostgreSQL, Redis, RabbitMQ и создаёт сервисы."""
    global _db, _redis, _event_bus, _groups, _ingest_service, _proximity_engine, _preference_service

    from src.config import settings
    from src.infra.database import get_db, init_db
    from src.infra.event_bus import get_event_bus, init_event_bus
    from src.infra.redis_client import get_redis, init_redis

    await init_db()
    _db = get_db()

    await init_redis()
    _redis = get_redis()

    await init_event_bus()
    _event_bus = get_event_bus()

    _groups = GroupDirectoryClient(settings.deployment.groups_service_url)

    _ingest_service, _proximity_engine, _preference_service = build_services(_db, _redis, _event_bus, _groups)

    await log_info("Location Sharing Service инициализирован", type_msg=TypeMsg.INFO)


async def close_dependencies() -> None:
    """Дожидается фоновых уведомлений и закрывает ресурсы."""
    global _db, _redis, _event_bus, _groups, _ingest_service, _proximity_engine, _preference_service

    if _preference_service:
        await _preference_service.drain()

    if _groups:
        await _groups.close()

    if _event_bus:
        await _event_bus.disconnect()

    if _redis:
        await _redis.disconnect()

    if _db:
        await _db.disconnect()

    _db = _redis = _event_bus = _groups = None
    _ingest_service = _proximity_engine = _preference_service = None


def get_db() -> DatabaseManager:
    if _db is None:
        raise RuntimeError("DatabaseManager не инициализирован")
    return _db


def get_redis() -> RedisClient:
    if _redis is None:
        raise RuntimeError("RedisClient не инициализирован")
    return _redis


def get_event_bus() -> EventBus:
    if _event_bus is None:
        raise RuntimeError("EventBus не инициализирован")
    return _event_bus


def get_ingest_service() -> LocationIngestService:
    if _ingest_service is None:
        raise RuntimeError("LocationIngestService не инициализирован")
    return _ingest_service


def get_proximity_engine() -> ProximityQueryEngine:
    if _proximity_engine is None:
        raise RuntimeError("ProximityQueryEngine не инициализирован")
    return _proximity_engine


def get_preference_service() -> SharingPreferenceService:
    if _preference_service is None:
        raise RuntimeError("SharingPreferenceService не инициализирован")
    return _preference_service


# === AUTH ===

def get_bot_token() -> str:
    from src.config import settings
    return settings.telegram.BOT_TOKEN


async def get_current_user(
    bot_token: Annotated[str, Depends(get_bot_token)],
    init_data: Annotated[Optional[str], Header(alias=INIT_DATA_HEADER)] = None,
) -> TelegramInitData:
    """
    Проверяет initData из заголовка X-Telegram-Init-Data.

    Raises:
        UnauthenticatedError: заголовок отсутствует или не прошёл проверку
    """
    from src.config import settings

    if not init_data:
        raise UnauthenticatedError("Missing Telegram init data")

    try:
        return validate_init_data(init_data, bot_token, settings.telegram.INIT_DATA_MAX_AGE)
    except TelegramAuthError as e:
        await log_warning(f"Отклонены initData: {e}")
        raise UnauthenticatedError("Invalid Telegram init data") from e


async def get_current_user_id(
    user: Annotated[TelegramInitData, Depends(get_current_user)],
) -> int:
    return user.user.id
