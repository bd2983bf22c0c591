# src/client/api_client.py
"""
HTTP клиент API шаринга геолокации для Mini App и других клиентов.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import httpx

from src.client.errors import (
    ApiSharingNotEnabledError,
    ApiUnavailableError,
    api_error_from_response,
)
from src.common.constants import INIT_DATA_HEADER, NearbyState
from src.common.logger import log_warning
from src.services.location_sharing.schemas import (
    NearbyResponse,
    PreferenceSchema,
    PreferencesResponse,
    SessionsResponse,
    StopSharingResponse,
    UpdateLocationResponse,
)


def classify_nearby(response: NearbyResponse) -> NearbyState:
    """«Не делюсь» и «никого рядом» — разные состояния для UI."""
    if not response.active_sharing:
        return NearbyState.NOT_SHARING
    if not response.nearby:
        return NearbyState.NOBODY_NEARBY
    return NearbyState.HAS_NEARBY


class LocationSharingClient:
    """
    Клиент API /api/v1/location-sharing.
    Все запросы подписываются Telegram initData.

    Raises (все методы):
        ApiError: подкласс по error_code ответа; сетевые ошибки -> ApiUnavailableError
    """

    def __init__(
        self,
        base_url: str,
        init_data: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {INIT_DATA_HEADER: init_data}

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> LocationSharingClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self.client.request(
                method, path, params=params, json=json, headers=self._headers
            )
        except httpx.HTTPError as e:
            raise ApiUnavailableError(f"Сервер недоступен: {e}") from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            raise api_error_from_response(response.status_code, body)

        return response.json()

    # =========================================================================
    # ГЕОЛОКАЦИЯ
    # =========================================================================

    async def update_location(
        self,
        event_id: UUID,
        latitude: float,
        longitude: float,
        accuracy: float | None = None,
        heading: float | None = None,
        speed: float | None = None,
        altitude: float | None = None,
    ) -> UpdateLocationResponse:
        payload = {
            "eventId": str(event_id),
            "latitude": latitude,
            "longitude": longitude,
            "accuracy": accuracy,
            "heading": heading,
            "speed": speed,
            "altitude": altitude,
        }
        data = await self._request("POST", "/location", json=payload)
        return UpdateLocationResponse.model_validate(data)

    async def get_nearby(self, event_id: UUID, radius_meters: float | None = None) -> NearbyResponse:
        params: dict[str, Any] = {"event_id": str(event_id)}
        if radius_meters is not None:
            params["radius_meters"] = radius_meters
        data = await self._request("GET", "/location", params=params)
        return NearbyResponse.model_validate(data)

    async def stop_sharing(self, event_id: UUID) -> StopSharingResponse:
        data = await self._request("DELETE", "/location", params={"event_id": str(event_id)})
        return StopSharingResponse.model_validate(data)

    async def list_sessions(self) -> SessionsResponse:
        data = await self._request("GET", "/sessions")
        return SessionsResponse.model_validate(data)

    async def nearby_state(
        self,
        event_id: UUID,
        radius_meters: float | None = None,
    ) -> tuple[NearbyState, NearbyResponse | None]:
        """
        Состояние экрана «кто рядом».
        Временная ошибка сервера -> UNAVAILABLE, а не пустой список.
        Остальные ошибки API пробрасываются.
        """
        try:
            response = await self.get_nearby(event_id, radius_meters)
        except ApiSharingNotEnabledError:
            return NearbyState.NOT_SHARING, None
        except ApiUnavailableError as e:
            await log_warning(f"Кто рядом: сервис недоступен: {e}")
            return NearbyState.UNAVAILABLE, None

        return classify_nearby(response), response

    # =========================================================================
    # НАСТРОЙКИ
    # =========================================================================

    async def get_preferences(self, event_id: UUID) -> list[PreferenceSchema]:
        data = await self._request("GET", "/preferences", params={"event_id": str(event_id)})
        return PreferencesResponse.model_validate(data).preferences

    async def set_preference(
        self,
        group_id: UUID,
        event_id: UUID,
        sharing_enabled: bool,
        auto_enable_on_checkin: bool = False,
        notification_enabled: bool = True,
    ) -> PreferenceSchema:
        payload = {
            "groupId": str(group_id),
            "eventId": str(event_id),
            "sharingEnabled": sharing_enabled,
            "autoEnableOnCheckin": auto_enable_on_checkin,
            "notificationEnabled": notification_enabled,
        }
        data = await self._request("POST", "/preferences", json=payload)
        return PreferenceSchema.model_validate(data)
