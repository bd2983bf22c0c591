# src/core/location/service.py
"""
Приём позиций (Location Ingest) и операции над сессиями геолокации.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from src.common.constants import TypeMsg
from src.common.exceptions import SharingNotEnabledError, StorageError, ValidationError
from src.common.logger import log_debug, log_info, log_warning
from src.core.groups.client import GroupDirectoryClient
from src.core.location.models import LocationSession, PositionReport, UpdateLocationResult
from src.core.location.repository import LocationSessionRepository
from src.core.sharing.repository import SharingPreferenceRepository


def parse_position(data: dict[str, Any]) -> PositionReport:
    """
    Проверяет диапазоны координат и метаданных датчиков.

    Raises:
        ValidationError: с ошибками по полям в details
    """
    try:
        return PositionReport.model_validate(data)
    except PydanticValidationError as e:
        details = {
            ".".join(str(part) for part in error["loc"]): error["msg"]
            for error in e.errors()
        }
        raise ValidationError("Некорректные данные позиции", details=details) from e


class LocationIngestService:
    """
    Приём позиций пользователя.

    Позиция принимается только при хотя бы одной группе с включённым шарингом
    на событии. Сессия хранит одну последнюю позицию на (user, event).
    """

    def __init__(
        self,
        sessions: LocationSessionRepository,
        preferences: SharingPreferenceRepository,
        groups: GroupDirectoryClient,
        ttl_hours: int = 4,
    ) -> None:
        self._sessions = sessions
        self._preferences = preferences
        self._groups = groups
        self._ttl_hours = ttl_hours

    async def report_position(
        self,
        user_id: int,
        event_id: UUID,
        report: PositionReport,
    ) -> UpdateLocationResult:
        """
        Записывает позицию пользователя.

        Raises:
            SharingNotEnabledError: ни одна группа не включена для события
            StorageError: хранилище сессий или настроек недоступно
        """
        enabled_groups = await self._preferences.list_enabled_group_ids(user_id, event_id)
        if not enabled_groups:
            await log_warning(f"Позиция отклонена: user={user_id}, event={event_id}, шаринг не включён")
            raise SharingNotEnabledError("Location sharing is not enabled for any group")

        session = await self._sessions.upsert(user_id, event_id, report, self._ttl_hours)

        # Позиция уже записана; при недоступном сервисе групп sharing_groups пуст
        try:
            names = await self._groups.get_group_names(enabled_groups)
        except StorageError as e:
            await log_warning(f"Названия групп недоступны: user={user_id}, event={event_id}: {e}")
            names = {}

        await log_debug(
            f"Позиция принята: user={user_id}, event={event_id}, "
            f"lat={report.latitude:.5f}, lon={report.longitude:.5f}"
        )

        return UpdateLocationResult(
            session=session,
            sharing_groups=sorted(names.values(), key=str.lower),
        )

    async def stop_sharing(self, user_id: int, event_id: UUID) -> bool:
        """Завершает сессию. Идемпотентна; True, если активная сессия была."""
        stopped = await self._sessions.stop(user_id, event_id) > 0

        await log_info(
            f"Шаринг остановлен: user={user_id}, event={event_id}, была активна={stopped}",
            type_msg=TypeMsg.INFO,
        )
        return stopped

    async def get_current_session(self, user_id: int, event_id: UUID) -> Optional[LocationSession]:
        session = await self._sessions.get_active(user_id, event_id)
        if session is not None and not session.is_active():
            return None
        return session

    async def list_active_sessions(self, user_id: int) -> list[LocationSession]:
        return [session for session in await self._sessions.list_active_for_user(user_id) if session.is_active()]
