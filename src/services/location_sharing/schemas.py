# src/services/location_sharing/schemas.py
"""
Модели запросов и ответов HTTP API шаринга геолокации.
Поля в JSON — camelCase (как ожидает Mini App); snake_case тоже принимается.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.common.constants import SessionStatus
from src.core.location.models import PositionReport


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# === REQUEST MODELS ===

class UpdateLocationRequest(CamelModel):
    """Новая позиция пользователя на событии."""
    event_id: UUID
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    heading: Optional[float] = Field(None, ge=0, le=360)
    speed: Optional[float] = Field(None, ge=0)
    altitude: Optional[float] = None

    def to_report(self) -> PositionReport:
        return PositionReport(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            heading=self.heading,
            speed=self.speed,
            altitude=self.altitude,
        )


class SetPreferenceRequest(CamelModel):
    """Включение/выключение шаринга для группы."""
    group_id: UUID
    event_id: UUID
    sharing_enabled: bool
    auto_enable_on_checkin: bool = False
    notification_enabled: bool = True


# === RESPONSE MODELS ===

class SessionSchema(CamelModel):
    user_id: int
    event_id: UUID
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None
    altitude: Optional[float] = None
    status: SessionStatus
    last_updated: datetime
    expires_at: datetime


class UpdateLocationResponse(CamelModel):
    session: SessionSchema
    sharing_groups: list[str]


class NearbyMemberSchema(CamelModel):
    user_id: int
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    latitude: float
    longitude: float
    distance_meters: float
    last_updated: datetime
    sharing_groups: list[str]


class NearbyResponse(CamelModel):
    active_sharing: bool
    current_session: Optional[SessionSchema] = None
    nearby: list[NearbyMemberSchema] = Field(default_factory=list)


class StopSharingResponse(CamelModel):
    success: bool = True


class SessionsResponse(CamelModel):
    sessions: list[SessionSchema]


class PreferenceSchema(CamelModel):
    group_id: UUID
    event_id: UUID
    group_name: Optional[str] = None
    sharing_enabled: bool
    auto_enable_on_checkin: bool
    notification_enabled: bool
    updated_at: datetime


class PreferencesResponse(CamelModel):
    preferences: list[PreferenceSchema]


class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""
    error_code: str
    message: str
    details: Optional[dict[str, Any]] = None


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""
    service: str
    status: str = "healthy"  # healthy, degraded
    version: Optional[str] = None
    uptime_seconds: Optional[float] = None
    dependencies: dict[str, str] = Field(default_factory=dict)
