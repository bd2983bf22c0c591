# src/core/sharing/service.py
"""
Сервис настроек шаринга геолокации (шлюз согласия).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID

from src.common.constants import TypeMsg
from src.common.exceptions import NotGroupMemberError
from src.common.logger import log_error, log_info
from src.core.groups.client import GroupDirectoryClient
from src.core.sharing.models import PreferenceUpdate, SharingPreference
from src.core.sharing.repository import SharingPreferenceRepository

if TYPE_CHECKING:
    from src.core.notifications.service import LocationSharingNotifier


class SharingPreferenceService:
    """
    Чтение и изменение настроек шаринга.

    Включение шаринга (false -> true) запускает уведомление группе
    фоновой задачей; ошибка уведомления не влияет на ответ.
    """

    def __init__(
        self,
        repository: SharingPreferenceRepository,
        groups: GroupDirectoryClient,
        notifier: LocationSharingNotifier,
    ) -> None:
        self._repository = repository
        self._groups = groups
        self._notifier = notifier
        # Ссылки на фоновые задачи, чтобы их не собрал GC до завершения
        self._background_tasks: set[asyncio.Task[None]] = set()

    async def get_preferences(self, user_id: int, event_id: UUID) -> list[SharingPreference]:
        """Настройки пользователя на событии с названиями групп, по алфавиту."""
        preferences = await self._repository.list_for_user(user_id, event_id)
        names = await self._groups.get_group_names([pref.group_id for pref in preferences])

        enriched = [
            pref.model_copy(update={"group_name": names.get(pref.group_id)})
            for pref in preferences
        ]
        return sorted(enriched, key=lambda pref: ((pref.group_name or "").lower(), str(pref.group_id)))

    async def set_preference(self, user_id: int, update: PreferenceUpdate) -> SharingPreference:
        """
        Создаёт или обновляет настройку для группы.

        Raises:
            NotGroupMemberError: пользователь не состоит в группе
            StorageError: хранилище или сервис групп недоступны
        """
        if not await self._groups.is_member(user_id, update.group_id):
            await log_info(
                f"Отказ в настройке шаринга: user={user_id} не в группе {update.group_id}",
                type_msg=TypeMsg.WARNING,
            )
            raise NotGroupMemberError("Not a member of this group")

        result = await self._repository.upsert(user_id, update)

        await log_info(
            f"Настройка шаринга: user={user_id}, group={update.group_id}, event={update.event_id}, "
            f"enabled={update.sharing_enabled} (было {result.previous_enabled})",
            type_msg=TypeMsg.INFO,
        )

        if result.sharing_started:
            self._schedule_notification(user_id, update.group_id, update.event_id)

        return result.preference

    def _schedule_notification(self, user_id: int, group_id: UUID, event_id: UUID) -> None:
        task = asyncio.create_task(self._notify_safely(user_id, group_id, event_id))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _notify_safely(self, user_id: int, group_id: UUID, event_id: UUID) -> None:
        try:
            await self._notifier.notify_share_started(user_id, group_id, event_id)
        except Exception as e:
            await log_error(
                f"Ошибка уведомления о шаринге: user={user_id}, group={group_id}: {e}",
                exc_info=True,
            )

    async def drain(self) -> None:
        """Дожидается фоновых уведомлений (остановка сервиса, тесты)."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
