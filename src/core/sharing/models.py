# src/core/sharing/models.py
"""
Модели настроек шаринга геолокации.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SharingPreference(BaseModel):
    """Согласие пользователя показывать позицию группе на событии."""

    model_config = ConfigDict(from_attributes=True)

    user_id: int
    group_id: UUID
    event_id: UUID
    sharing_enabled: bool = False
    auto_enable_on_checkin: bool = False
    notification_enabled: bool = True
    updated_at: datetime
    group_name: Optional[str] = Field(None, description="Название группы (из сервиса групп)")


class PreferenceUpdate(BaseModel):
    """Изменение настройки шаринга для одной группы."""

    group_id: UUID
    event_id: UUID
    sharing_enabled: bool
    auto_enable_on_checkin: bool = False
    notification_enabled: bool = True


class PreferenceWriteResult(BaseModel):
    """Результат upsert: новая строка и значение sharing_enabled до записи."""

    preference: SharingPreference
    previous_enabled: Optional[bool] = None

    @property
    def sharing_started(self) -> bool:
        """Переход false -> true (первая запись с enabled=true тоже считается)."""
        return self.preference.sharing_enabled and not self.previous_enabled
