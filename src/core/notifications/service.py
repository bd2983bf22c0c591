# src/core/notifications/service.py
"""
Уведомления участникам группы о том, что пользователь начал делиться геолокацией.

Публикует по одному событию notification.send на получателя в шину событий.
Фактическая доставка push выполняется воркером вне этого сервиса.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from redis.exceptions import RedisError

from src.common.constants import SharingAction, TypeMsg
from src.common.localization import get_text
from src.common.logger import log_debug, log_info, log_warning
from src.core.groups.client import GroupDirectoryClient
from src.core.groups.models import MemberProfile
from src.core.notifications.rate_limiter import NotificationRateLimiter
from src.core.sharing.repository import SharingPreferenceRepository
from src.infra.event_bus import DomainEvent, EventBus, EventTypes


@dataclass
class NotificationResult:
    """Итог рассылки: сколько событий опубликовано, сколько упало, подавлена ли рассылка."""
    sent: int = 0
    failed: int = 0
    suppressed: bool = False


class LocationSharingNotifier:
    """
    Рассылка «X начал(а) делиться геолокацией с группой G».

    Порядок: проверка окна -> получатели -> рассылка -> маркер.
    Ошибка доставки одному получателю не мешает остальным.
    Недоступный Redis не блокирует рассылку: лишнее уведомление допустимо,
    пропущенное нет.
    """

    def __init__(
        self,
        event_bus: EventBus,
        rate_limiter: NotificationRateLimiter,
        groups: GroupDirectoryClient,
        preferences: SharingPreferenceRepository,
        kind: str = "location_sharing",
    ) -> None:
        self._event_bus = event_bus
        self._rate_limiter = rate_limiter
        self._groups = groups
        self._preferences = preferences
        self._kind = kind

    async def notify_share_started(
        self,
        user_id: int,
        group_id: UUID,
        event_id: UUID,
    ) -> NotificationResult:
        """
        Уведомляет участников группы (кроме самого пользователя) о начале шаринга.

        Args:
            user_id: Кто начал делиться
            group_id: С какой группой
            event_id: На каком событии

        Returns:
            NotificationResult; suppressed=True, если окно ещё не истекло
        """
        if await self._within_window(user_id, group_id):
            await log_debug(
                f"Уведомление о шаринге подавлено: user={user_id}, group={group_id}"
            )
            return NotificationResult(suppressed=True)

        group = await self._groups.get_group(group_id)
        group_name = group.name if group else ""

        member_ids = await self._groups.get_member_ids(group_id)
        candidates = sorted({member_id for member_id in member_ids if member_id != user_id})

        profiles = await self._groups.get_profiles([user_id, *candidates])
        settings_by_user = await self._groups.get_notification_settings(candidates)
        muted = await self._preferences.list_notifications_muted(group_id, event_id, candidates)

        recipients = [
            member_id
            for member_id in candidates
            if member_id not in muted
            and (member_id not in settings_by_user or settings_by_user[member_id].accepts_group_push)
        ]

        sharer = profiles.get(user_id)
        result = NotificationResult()

        for recipient_id in recipients:
            recipient = profiles.get(recipient_id)
            try:
                await self._publish(recipient_id, recipient, sharer, group_id, group_name, event_id)
                result.sent += 1
            except Exception as e:
                result.failed += 1
                await log_warning(
                    f"Не удалось отправить уведомление о шаринге: recipient={recipient_id}, error={e}"
                )

        try:
            await self._rate_limiter.record_marker(user_id, group_id, self._kind)
        except RedisError as e:
            await log_warning(f"Маркер уведомления не записан: user={user_id}, group={group_id}, error={e}")

        await log_info(
            f"Уведомления о шаринге: user={user_id}, group={group_id}, "
            f"sent={result.sent}, failed={result.failed}, skipped={len(candidates) - len(recipients)}",
            type_msg=TypeMsg.INFO,
        )
        return result

    async def _within_window(self, user_id: int, group_id: UUID) -> bool:
        """Маркер в окне. Ошибка Redis считается отсутствием маркера."""
        try:
            return await self._rate_limiter.check_window(user_id, group_id, self._kind)
        except RedisError as e:
            await log_warning(f"Проверка окна уведомлений не удалась, отправляем: user={user_id}, error={e}")
            return False

    async def _publish(
        self,
        recipient_id: int,
        recipient: MemberProfile | None,
        sharer: MemberProfile | None,
        group_id: UUID,
        group_name: str,
        event_id: UUID,
    ) -> None:
        language = recipient.language if recipient else None
        sharer_name = (sharer.display_name if sharer else None) or get_text("SOMEONE", language)

        text = get_text(
            "LOCATION_SHARING_STARTED",
            language,
            sharer_name=sharer_name,
            group_name=group_name,
        )

        await self._event_bus.publish(DomainEvent(
            event_type=EventTypes.NOTIFICATION_SEND,
            payload={
                "user_id": recipient_id,
                "text": text,
                "kind": self._kind,
                "data": {
                    "sharer_name": sharer_name,
                    "group_name": group_name,
                    "group_id": str(group_id),
                    "event_id": str(event_id),
                    "action": SharingAction.STARTED.value,
                },
            },
        ))
