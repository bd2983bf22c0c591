# src/infra/__init__.py
"""
Инфраструктурный слой: PostgreSQL (сессии и настройки шаринга),
Redis (маркеры уведомлений), RabbitMQ (исходящие уведомления).
"""

from src.infra.database import DatabaseManager, get_db, init_db, close_db
from src.infra.redis_client import RedisClient, get_redis, init_redis, close_redis
from src.infra.event_bus import EventBus, get_event_bus, init_event_bus, close_event_bus

__all__ = [
    "DatabaseManager",
    "get_db",
    "init_db",
    "close_db",
    "RedisClient",
    "get_redis",
    "init_redis",
    "close_redis",
    "EventBus",
    "get_event_bus",
    "init_event_bus",
    "close_event_bus",
]
