# src/services/location_sharing/sweeper.py
"""
Периодическая очистка просроченных сессий.
Только гигиена хранилища: чтение и так отбрасывает сессии с истёкшим expires_at.
"""

from __future__ import annotations

import asyncio

from src.common.constants import TypeMsg
from src.common.exceptions import StorageError
from src.common.logger import log_info, log_warning
from src.core.location.repository import LocationSessionRepository


class SessionSweeper:
    """Запускает expire_stale_sessions раз в interval_seconds до остановки."""

    name = "session_sweeper"

    def __init__(self, sessions: LocationSessionRepository, interval_seconds: float = 300) -> None:
        self._sessions = sessions
        self._interval = interval_seconds
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def expire_stale_sessions(self) -> int:
        """Помечает expired активные сессии с истёкшим сроком. Возвращает их число."""
        count = await self._sessions.expire_stale()
        if count:
            await log_info(f"Просроченных сессий помечено: {count}", type_msg=TypeMsg.INFO)
        return count

    async def run_once(self) -> int:
        """Один проход. Ошибка хранилища логируется, проход считается пустым."""
        try:
            return await self.expire_stale_sessions()
        except StorageError as e:
            await log_warning(f"Sweep сессий пропущен: {e}")
            return 0

    async def run_forever(self) -> None:
        self._running = True
        await log_info(f"{self.name} запущен, интервал {self._interval} с", type_msg=TypeMsg.INFO)
        try:
            while self._running:
                await self.run_once()
                await asyncio.sleep(self._interval)
        finally:
            self._running = False
            await log_info(f"{self.name} остановлен", type_msg=TypeMsg.INFO)

    def start(self) -> asyncio.Task[None]:
        """Запускает цикл фоновой задачей в текущем event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
