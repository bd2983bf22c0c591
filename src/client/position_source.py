# src/client/position_source.py
"""
Источник позиции устройства.

Контракт push-модели: после watch() источник сам вызывает on_fix при каждой
новой позиции и on_error при ошибке; clear_watch() прекращает вызовы.
"""

from __future__ import annotations

import asyncio
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Awaitable, Callable, Optional

from src.client.errors import PositionTimeoutError, PositionUnavailableError, WatchError
from src.common.logger import log_debug


@dataclass(frozen=True)
class PositionOptions:
    """Параметры подписки: точность, допустимый возраст позиции, таймаут одной позиции."""
    high_accuracy: bool = True
    maximum_age: float = 60.0  # секунды
    timeout: float = 10.0  # секунды

    @classmethod
    def from_settings(cls) -> PositionOptions:
        from src.config import settings
        return cls(
            high_accuracy=settings.watch.HIGH_ACCURACY,
            maximum_age=settings.watch.MAXIMUM_AGE_SECONDS,
            timeout=settings.watch.TIMEOUT_SECONDS,
        )


@dataclass(frozen=True)
class PositionFix:
    """Одна позиция от устройства."""
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None
    altitude: Optional[float] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def age(self, now: datetime | None = None) -> timedelta:
        return (now or datetime.now(timezone.utc)) - self.timestamp


FixCallback = Callable[[PositionFix], Awaitable[None]]
ErrorCallback = Callable[[WatchError], Awaitable[None]]


async def _next_fix(iterator: AsyncIterator[PositionFix]) -> PositionFix | None:
    """Следующая позиция или None, если поток закончился."""
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None


class PositionSource(ABC):
    """Абстракция API геолокации устройства."""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Запрашивает доступ к геолокации. False означает отказ."""

    @abstractmethod
    def watch(self, on_fix: FixCallback, on_error: ErrorCallback, options: PositionOptions) -> int:
        """Начинает подписку и возвращает её handle."""

    @abstractmethod
    def clear_watch(self, handle: int) -> None:
        """Прекращает подписку. После возврата колбэки не вызываются."""


class StreamPositionSource(PositionSource):
    """
    Источник поверх асинхронного потока позиций (например, фид gpsd).

    stream_factory вызывается на каждую подписку. Позиции старше
    options.maximum_age отбрасываются; если новой позиции нет дольше
    options.timeout, вызывается on_error(PositionTimeoutError) и ожидание
    продолжается. Конец потока или его ошибка -> PositionUnavailableError (terminal).
    """

    def __init__(
        self,
        stream_factory: Callable[[], AsyncIterator[PositionFix]],
        permission_granted: bool = True,
    ) -> None:
        self._stream_factory = stream_factory
        self._permission_granted = permission_granted
        self._handles = itertools.count(1)
        self._tasks: dict[int, asyncio.Task[None]] = {}

    async def request_permission(self) -> bool:
        return self._permission_granted

    def watch(self, on_fix: FixCallback, on_error: ErrorCallback, options: PositionOptions) -> int:
        handle = next(self._handles)
        self._tasks[handle] = asyncio.create_task(self._pump(handle, on_fix, on_error, options))
        return handle

    def clear_watch(self, handle: int) -> None:
        task = self._tasks.pop(handle, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    @property
    def active_watches(self) -> int:
        return len(self._tasks)

    async def _pump(
        self,
        handle: int,
        on_fix: FixCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> None:
        iterator = self._stream_factory().__aiter__()
        # Ожидание следующей позиции живёт между таймаутами: отмена __anext__
        # закрыла бы async-генератор источника
        pending: asyncio.Future[PositionFix | None] | None = None
        try:
            while handle in self._tasks:
                if pending is None:
                    pending = asyncio.ensure_future(_next_fix(iterator))

                done, _ = await asyncio.wait({pending}, timeout=options.timeout)
                if not done:
                    await on_error(PositionTimeoutError(f"Нет позиции дольше {options.timeout} с"))
                    continue

                future, pending = pending, None
                try:
                    fix = future.result()
                except Exception as e:
                    await on_error(PositionUnavailableError(f"Ошибка источника позиции: {e}", terminal=True))
                    return

                if fix is None:
                    await on_error(PositionUnavailableError("Источник позиции завершился", terminal=True))
                    return

                if fix.age() > timedelta(seconds=options.maximum_age):
                    await log_debug(f"Устаревшая позиция отброшена: возраст {fix.age().total_seconds():.0f} с")
                    continue

                if handle in self._tasks:
                    await on_fix(fix)
        finally:
            if pending is not None:
                pending.cancel()
            self._tasks.pop(handle, None)
