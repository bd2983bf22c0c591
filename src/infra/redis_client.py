# src/infra/redis_client.py
"""
Клиент Redis.
Хранит служебные маркеры (частота уведомлений) с TTL; ключи изолированы namespace.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis

from src.common.logger import log_error, log_info
from src.common.constants import TypeMsg


class RedisClient:
    """
    Асинхронный клиент Redis (Singleton).
    Поддерживает строковые и JSON операции с TTL.
    """

    _instance: RedisClient | None = None
    _client: redis.Redis | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client = None
        self._namespace = "festival"

    @property
    def client(self) -> redis.Redis:
        """Возвращает клиент Redis."""
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    def _make_key(self, key: str) -> str:
        """Добавляет namespace к ключу."""
        return f"{self._namespace}:{key}"

    async def connect(
        self,
        url: str | None = None,
        max_connections: int = 20,
        namespace: str | None = None,
    ) -> None:
        """
        Подключается к Redis и проверяет соединение PING.

        Args:
            url: URL Redis (если None, берётся из конфига)
            max_connections: Максимальное количество соединений
            namespace: Префикс ключей
        """
        if self._client is not None:
            return

        if url is None:
            from src.config import settings
            url = settings.redis.url
            max_connections = settings.redis.REDIS_MAX_CONNECTIONS
            namespace = settings.redis.REDIS_NAMESPACE

        if namespace:
            self._namespace = namespace

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)

        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        await self._client.ping()

        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    # =========================================================================
    # БАЗОВЫЕ ОПЕРАЦИИ
    # =========================================================================

    async def get(self, key: str) -> str | None:
        return await self.client.get(self._make_key(key))

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        Устанавливает значение.

        Args:
            key: Ключ (без namespace)
            value: Значение
            ttl: Время жизни в секундах
        """
        return bool(await self.client.set(self._make_key(key), value, ex=ttl))

    # =========================================================================
    # JSON ОПЕРАЦИИ
    # =========================================================================

    async def get_json(self, key: str) -> dict[str, Any] | list[Any] | None:
        """Получает и парсит JSON; битое значение считается отсутствующим."""
        data = await self.get(key)
        if data is None:
            return None

        try:
            return json.loads(data)
        except json.JSONDecodeError:
            await log_error(f"Некорректный JSON в ключе {key}")
            return None

    async def set_json(
        self,
        key: str,
        data: dict[str, Any] | list[Any],
        ttl: int | None = None,
    ) -> bool:
        """Сериализует и сохраняет JSON."""
        return await self.set(key, json.dumps(data, ensure_ascii=False, default=str), ttl=ttl)

    async def health_check(self) -> bool:
        """Проверяет подключение к Redis (PING)."""
        try:
            return bool(await self.client.ping())
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}")
            return False


def get_redis() -> RedisClient:
    """Возвращает глобальный экземпляр RedisClient."""
    return RedisClient()


async def init_redis() -> None:
    """Инициализирует подключение к Redis по настройкам."""
    from src.config import settings

    await get_redis().connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        namespace=settings.redis.REDIS_NAMESPACE,
    )
    await log_info(
        f"Redis подключён: {settings.redis.REDIS_HOST}:{settings.redis.REDIS_PORT}/{settings.redis.REDIS_DB}",
        type_msg=TypeMsg.INFO,
    )


async def close_redis() -> None:
    """Закрывает подключение к Redis."""
    await get_redis().disconnect()
