# src/core/groups/models.py
"""
Модели внешнего сервиса групп (ответы справочника групп и профилей).
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class GroupInfo(BaseModel):
    """Группа участников фестиваля."""

    id: UUID
    name: str
    event_id: Optional[UUID] = None


class MemberProfile(BaseModel):
    """Публичный профиль участника для отображения на карте."""

    user_id: int
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    language: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        """Имя для уведомлений: полное имя, затем username."""
        return self.full_name or self.username or None


class MemberNotificationSettings(BaseModel):
    """Настройки уведомлений участника. Отсутствие настроек = всё включено."""

    user_id: int
    push_enabled: bool = Field(True, description="Push-уведомления разрешены")
    group_notifications_enabled: bool = Field(True, description="Уведомления групп разрешены")

    @property
    def accepts_group_push(self) -> bool:
        return self.push_enabled and self.group_notifications_enabled
