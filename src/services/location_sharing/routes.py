# src/services/location_sharing/routes.py
"""
HTTP endpoints шаринга геолокации.

Endpoints:
- POST   /api/v1/location-sharing/location      - отправить позицию
- GET    /api/v1/location-sharing/location      - кто рядом
- DELETE /api/v1/location-sharing/location      - остановить шаринг
- GET    /api/v1/location-sharing/sessions      - активные сессии пользователя
- GET    /api/v1/location-sharing/preferences   - настройки на событии
- POST   /api/v1/location-sharing/preferences   - изменить настройку группы
"""

from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from src.core.location.proximity import ProximityQueryEngine
from src.core.location.service import LocationIngestService
from src.core.sharing.models import PreferenceUpdate
from src.core.sharing.service import SharingPreferenceService
from src.services.location_sharing.dependencies import (
    get_current_user_id,
    get_ingest_service,
    get_preference_service,
    get_proximity_engine,
)
from src.services.location_sharing.schemas import (
    ErrorResponse,
    NearbyResponse,
    PreferenceSchema,
    PreferencesResponse,
    SessionSchema,
    SessionsResponse,
    SetPreferenceRequest,
    StopSharingResponse,
    UpdateLocationRequest,
    UpdateLocationResponse,
)

router = APIRouter(prefix="/api/v1/location-sharing", tags=["Location Sharing"])

UserId = Annotated[int, Depends(get_current_user_id)]

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Некорректные данные"},
    401: {"model": ErrorResponse, "description": "Нет или невалидны initData"},
    500: {"model": ErrorResponse, "description": "Хранилище недоступно"},
}


def _default_radius() -> int:
    from src.config import settings
    return settings.location.DEFAULT_RADIUS_METERS


@router.post(
    "/location",
    response_model=UpdateLocationResponse,
    responses={**_ERRORS, 403: {"model": ErrorResponse, "description": "Шаринг не включён ни для одной группы"}},
)
async def update_location(
    request: UpdateLocationRequest,
    user_id: UserId,
    service: Annotated[LocationIngestService, Depends(get_ingest_service)],
) -> UpdateLocationResponse:
    """Записать текущую позицию (перезаписывает предыдущую, продлевает сессию)."""
    result = await service.report_position(user_id, request.event_id, request.to_report())
    return UpdateLocationResponse(
        session=SessionSchema.model_validate(result.session),
        sharing_groups=result.sharing_groups,
    )


@router.get("/location", response_model=NearbyResponse, responses=_ERRORS)
async def get_nearby(
    user_id: UserId,
    engine: Annotated[ProximityQueryEngine, Depends(get_proximity_engine)],
    event_id: UUID = Query(...),
    radius_meters: Optional[float] = Query(None),
) -> NearbyResponse:
    """Пользователи рядом, видимые через общие группы, по возрастанию расстояния."""
    radius = radius_meters if radius_meters is not None else _default_radius()
    result = await engine.nearby(user_id, event_id, radius)
    return NearbyResponse.model_validate(result)


@router.delete("/location", response_model=StopSharingResponse, responses=_ERRORS)
async def stop_sharing(
    user_id: UserId,
    service: Annotated[LocationIngestService, Depends(get_ingest_service)],
    event_id: UUID = Query(...),
) -> StopSharingResponse:
    """Остановить шаринг на событии. Повторный вызов тоже успешен."""
    await service.stop_sharing(user_id, event_id)
    return StopSharingResponse(success=True)


@router.get("/sessions", response_model=SessionsResponse, responses=_ERRORS)
async def list_sessions(
    user_id: UserId,
    service: Annotated[LocationIngestService, Depends(get_ingest_service)],
) -> SessionsResponse:
    """Активные сессии пользователя по всем событиям."""
    sessions = await service.list_active_sessions(user_id)
    return SessionsResponse(sessions=[SessionSchema.model_validate(session) for session in sessions])


@router.get("/preferences", response_model=PreferencesResponse, responses=_ERRORS)
async def get_preferences(
    user_id: UserId,
    service: Annotated[SharingPreferenceService, Depends(get_preference_service)],
    event_id: UUID = Query(...),
) -> PreferencesResponse:
    """Настройки шаринга пользователя на событии с названиями групп."""
    preferences = await service.get_preferences(user_id, event_id)
    return PreferencesResponse(
        preferences=[PreferenceSchema.model_validate(pref) for pref in preferences],
    )


@router.post(
    "/preferences",
    response_model=PreferenceSchema,
    responses={**_ERRORS, 403: {"model": ErrorResponse, "description": "Не участник группы"}},
)
async def set_preference(
    request: SetPreferenceRequest,
    user_id: UserId,
    service: Annotated[SharingPreferenceService, Depends(get_preference_service)],
) -> PreferenceSchema:
    """Включить или выключить шаринг для группы. Включение уведомляет группу."""
    preference = await service.set_preference(
        user_id,
        PreferenceUpdate(
            group_id=request.group_id,
            event_id=request.event_id,
            sharing_enabled=request.sharing_enabled,
            auto_enable_on_checkin=request.auto_enable_on_checkin,
            notification_enabled=request.notification_enabled,
        ),
    )
    return PreferenceSchema.model_validate(preference)
