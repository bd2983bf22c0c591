# src/infra/event_bus.py
"""
Шина событий на базе RabbitMQ.
Сервис только публикует события; доставку push выполняют внешние воркеры.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import aio_pika
from aio_pika import ExchangeType, Message
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange

from src.common.logger import log_debug, log_error, log_info
from src.common.constants import TypeMsg


class EventBusError(Exception):
    """Событие не удалось опубликовать."""


# =============================================================================
# ДОМЕННЫЕ СОБЫТИЯ
# =============================================================================

def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class DomainEvent:
    """Базовый класс для доменных событий."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    event_type: str = ""
    timestamp: str = field(default_factory=_utc_now_iso)
    payload: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Сериализует событие в JSON."""
        return json.dumps({
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "payload": self.payload,
        }, ensure_ascii=False, default=str)


class EventTypes:
    """Константы типов событий (routing keys)."""
    NOTIFICATION_SEND = "notification.send"


class EventBus:
    """
    Публикатор событий в topic exchange RabbitMQ (Singleton).
    Соединение robust: aio-pika сам восстанавливает его после обрыва.
    """

    _instance: EventBus | None = None
    _connection: AbstractConnection | None = None
    _channel: AbstractChannel | None = None
    _exchange: AbstractExchange | None = None

    def __new__(cls) -> EventBus:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._connection = None
        self._channel = None
        self._exchange = None
        self._exchange_name = "festival.events"

    @property
    def is_connected(self) -> bool:
        """Проверяет, активно ли соединение."""
        return self._connection is not None and not self._connection.is_closed

    async def connect(
        self,
        url: str | None = None,
        exchange_name: str | None = None,
        prefetch_count: int = 10,
    ) -> None:
        """
        Подключается к RabbitMQ и объявляет exchange.

        Args:
            url: URL RabbitMQ (если None, берётся из конфига)
            exchange_name: Имя exchange
            prefetch_count: Количество сообщений для prefetch
        """
        if self.is_connected:
            return

        if url is None:
            from src.config import settings
            url = settings.rabbitmq.url
            exchange_name = settings.rabbitmq.RABBITMQ_EXCHANGE
            prefetch_count = settings.rabbitmq.RABBITMQ_PREFETCH_COUNT

        if exchange_name:
            self._exchange_name = exchange_name

        await log_info("Подключение к RabbitMQ...", type_msg=TypeMsg.INFO)

        self._connection = await aio_pika.connect_robust(url)
        self._channel = await self._connection.channel()
        await self._channel.set_qos(prefetch_count=prefetch_count)

        self._exchange = await self._channel.declare_exchange(
            self._exchange_name,
            ExchangeType.TOPIC,
            durable=True,
        )

        await log_info("Подключение к RabbitMQ установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с RabbitMQ."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._exchange = None
            await log_info("Соединение с RabbitMQ закрыто", type_msg=TypeMsg.INFO)

    async def publish(self, event: DomainEvent) -> None:
        """
        Публикует событие в exchange (routing_key = event_type).

        Raises:
            EventBusError: нет соединения или брокер отверг публикацию.
            Вызывающий код сам решает, изолировать ли ошибку.
        """
        if not self.is_connected or self._exchange is None:
            raise EventBusError("Нет соединения с RabbitMQ")

        message = Message(
            body=event.to_json().encode(),
            content_type="application/json",
            message_id=event.event_id,
            timestamp=datetime.now(timezone.utc),
        )

        try:
            await self._exchange.publish(message, routing_key=event.event_type)
        except Exception as e:
            await log_error(f"Ошибка публикации события {event.event_type}: {e}")
            raise EventBusError(str(e)) from e

        await log_debug(f"Событие опубликовано: {event.event_type}")

    async def health_check(self) -> bool:
        """Проверяет, что соединение с RabbitMQ открыто."""
        return self.is_connected


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Возвращает глобальный экземпляр EventBus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


async def init_event_bus() -> None:
    """Инициализирует подключение к RabbitMQ по настройкам."""
    from src.config import settings

    await get_event_bus().connect(
        url=settings.rabbitmq.url,
        exchange_name=settings.rabbitmq.RABBITMQ_EXCHANGE,
        prefetch_count=settings.rabbitmq.RABBITMQ_PREFETCH_COUNT,
    )
    await log_info(
        f"RabbitMQ подключён: {settings.rabbitmq.RABBITMQ_HOST}:{settings.rabbitmq.RABBITMQ_PORT}",
        type_msg=TypeMsg.INFO,
    )


async def close_event_bus() -> None:
    """Закрывает подключение к RabbitMQ."""
    await get_event_bus().disconnect()
