# src/client/watch_loop.py
"""
Клиентский цикл отправки позиции.

WatchLoop.start() запрашивает доступ к геолокации, подписывается на источник
и возвращает WatchSession. Сессия владеет подпиской: stop() отменяет её,
дожидается отправок в полёте и один раз вызывает остановку шаринга на сервере.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional
from uuid import UUID

from src.client.api_client import LocationSharingClient
from src.client.errors import ApiError, PermissionDeniedError, WatchError
from src.client.position_source import PositionFix, PositionOptions, PositionSource
from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info, log_warning


class WatchState(str, Enum):
    """Состояния цикла."""
    IDLE = "idle"
    REQUESTING_PERMISSION = "requesting_permission"
    WATCHING = "watching"
    ERROR = "error"
    STOPPED = "stopped"


ErrorListener = Callable[[WatchError], Awaitable[None]]


class WatchSession:
    """Одна подписка на позицию для одного события."""

    def __init__(
        self,
        client: LocationSharingClient,
        source: PositionSource,
        event_id: UUID,
        options: PositionOptions,
        on_error: Optional[ErrorListener] = None,
    ) -> None:
        self._client = client
        self._source = source
        self._event_id = event_id
        self._options = options
        self._on_error = on_error

        self._handle: Optional[int] = None
        self._state = WatchState.IDLE
        self._stopped = False
        self._server_stopped = False
        self._in_flight: set[asyncio.Task[None]] = set()

        self.reports_sent = 0
        self.reports_failed = 0
        self.last_error: Optional[Exception] = None

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def event_id(self) -> UUID:
        return self._event_id

    @property
    def is_active(self) -> bool:
        return not self._stopped

    def _subscribe(self) -> None:
        self._handle = self._source.watch(self._handle_fix, self._handle_error, self._options)
        self._state = WatchState.WATCHING

    def _unsubscribe(self) -> None:
        if self._handle is not None:
            self._source.clear_watch(self._handle)
            self._handle = None

    async def _handle_fix(self, fix: PositionFix) -> None:
        if self._stopped:
            return
        task = asyncio.create_task(self._report(fix))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _report(self, fix: PositionFix) -> None:
        try:
            await self._client.update_location(
                self._event_id,
                latitude=fix.latitude,
                longitude=fix.longitude,
                accuracy=fix.accuracy,
                heading=fix.heading,
                speed=fix.speed,
                altitude=fix.altitude,
            )
            self.reports_sent += 1
        except ApiError as e:
            # Одна неудачная отправка не останавливает цикл
            self.reports_failed += 1
            self.last_error = e
            await log_warning(f"Не удалось отправить позицию (event={self._event_id}): {e}")
        except Exception as e:
            self.reports_failed += 1
            self.last_error = e
            await log_error(f"Ошибка отправки позиции (event={self._event_id}): {e}", exc_info=True)

    async def _handle_error(self, error: WatchError) -> None:
        if self._stopped:
            return

        self.last_error = error
        await log_warning(f"Ошибка геолокации ({error.code}): {error}")

        if error.terminal:
            self._unsubscribe()
            self._state = WatchState.ERROR

        if self._on_error is not None:
            await self._on_error(error)

    async def stop(self) -> None:
        """
        Останавливает подписку и шаринг на сервере.
        После возврата позиции больше не отправляются.

        Raises:
            ApiError: сервер не подтвердил остановку; повторный stop() повторит только её
        """
        if not self._stopped:
            self._stopped = True
            self._unsubscribe()
            if self._in_flight:
                await asyncio.gather(*self._in_flight, return_exceptions=True)
            self._state = WatchState.STOPPED

        if not self._server_stopped:
            await self._client.stop_sharing(self._event_id)
            self._server_stopped = True
            await log_info(f"Шаринг остановлен (event={self._event_id})", type_msg=TypeMsg.INFO)


class WatchLoop:
    """Фабрика сессий: не более одной активной подписки на экземпляр."""

    def __init__(
        self,
        client: LocationSharingClient,
        source: PositionSource,
        options: Optional[PositionOptions] = None,
    ) -> None:
        self._client = client
        self._source = source
        self._options = options or PositionOptions()
        self._session: Optional[WatchSession] = None
        self._state = WatchState.IDLE

    @property
    def state(self) -> WatchState:
        if self._session is not None:
            return self._session.state
        return self._state

    async def start(self, event_id: UUID, on_error: Optional[ErrorListener] = None) -> WatchSession:
        """
        Запрашивает доступ и начинает отправку позиций.

        Raises:
            PermissionDeniedError: доступ запрещён (без повторных запросов)
            RuntimeError: предыдущая сессия ещё активна
        """
        if self._session is not None and self._session.is_active:
            raise RuntimeError("Watch loop уже запущен; сначала вызовите stop() у текущей сессии")

        self._session = None
        self._state = WatchState.REQUESTING_PERMISSION
        if not await self._source.request_permission():
            self._state = WatchState.ERROR
            await log_warning("Доступ к геолокации запрещён")
            raise PermissionDeniedError("Доступ к геолокации запрещён")

        session = WatchSession(self._client, self._source, event_id, self._options, on_error=on_error)
        session._subscribe()
        self._session = session

        await log_info(f"Отправка позиции запущена (event={event_id})", type_msg=TypeMsg.INFO)
        return session
