# src/core/location/models.py
"""
Модели данных сессий геолокации и результатов поиска «кто рядом».
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import SessionStatus


class PositionReport(BaseModel):
    """Позиция, присланная клиентом. Диапазоны проверяются при создании."""

    latitude: float = Field(..., ge=-90, le=90, description="Широта")
    longitude: float = Field(..., ge=-180, le=180, description="Долгота")
    accuracy: Optional[float] = Field(None, ge=0, description="Точность, метры")
    heading: Optional[float] = Field(None, ge=0, le=360, description="Курс, градусы")
    speed: Optional[float] = Field(None, ge=0, description="Скорость, м/с")
    altitude: Optional[float] = Field(None, description="Высота, метры")


class LocationSession(BaseModel):
    """Последняя известная позиция пользователя на событии."""

    model_config = ConfigDict(from_attributes=True)

    user_id: int = Field(..., description="Telegram ID пользователя")
    event_id: UUID = Field(..., description="ID события (фестиваля)")
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None
    altitude: Optional[float] = None
    status: SessionStatus = SessionStatus.ACTIVE
    last_updated: datetime = Field(..., description="Время приёма сервером")
    expires_at: datetime = Field(..., description="Момент истечения сессии")

    def is_active(self, now: datetime | None = None) -> bool:
        """Активна, если статус active и срок не истёк (даже если sweep ещё не прошёл)."""
        now = now or datetime.now(timezone.utc)
        return self.status == SessionStatus.ACTIVE and now <= self.expires_at


class UpdateLocationResult(BaseModel):
    """Результат приёма позиции."""

    session: LocationSession
    sharing_groups: list[str] = Field(default_factory=list, description="Группы, которым видна позиция")


class ProximityResult(BaseModel):
    """Пользователь рядом, видимый вызывающему через общие группы."""

    user_id: int
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    latitude: float
    longitude: float
    distance_meters: float
    last_updated: datetime
    sharing_groups: list[str] = Field(default_factory=list, description="Все взаимно включённые группы")


class NearbyResult(BaseModel):
    """Ответ на запрос «кто рядом»."""

    active_sharing: bool
    current_session: Optional[LocationSession] = None
    nearby: list[ProximityResult] = Field(default_factory=list)
