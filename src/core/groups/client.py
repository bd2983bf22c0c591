# src/core/groups/client.py
"""
HTTP клиент внешнего сервиса групп.
Проверка членства, состав групп, профили и настройки уведомлений участников.
"""

from __future__ import annotations

import asyncio
from typing import Any
from uuid import UUID

import httpx

from src.common.exceptions import StorageError
from src.common.logger import log_error
from src.core.groups.models import GroupInfo, MemberNotificationSettings, MemberProfile


class GroupDirectoryClient:
    """
    Клиент сервиса групп.
    Любая сетевая ошибка или ответ 5xx превращается в StorageError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            await log_error(f"Сервис групп недоступен ({method} {path}): {e}")
            raise StorageError("Сервис групп недоступен") from e

        if response.status_code >= 500:
            await log_error(f"Сервис групп вернул {response.status_code} ({method} {path})")
            raise StorageError("Сервис групп недоступен")

        return response

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._request("GET", path, params=params)
        if response.status_code >= 400:
            await log_error(f"Сервис групп вернул {response.status_code} (GET {path})")
            raise StorageError(f"Ошибка сервиса групп: {response.status_code}")
        return response.json()

    async def _post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        response = await self._request("POST", path, json=json)
        if response.status_code >= 400:
            await log_error(f"Сервис групп вернул {response.status_code} (POST {path})")
            raise StorageError(f"Ошибка сервиса групп: {response.status_code}")
        return response.json()

    # =========================================================================
    # ОПЕРАЦИИ
    # =========================================================================

    async def is_member(self, user_id: int, group_id: UUID) -> bool:
        """Состоит ли пользователь в группе. 404 означает «не состоит»."""
        response = await self._request("GET", f"/groups/{group_id}/members/{user_id}")
        if response.status_code == 404:
            return False
        if response.status_code >= 400:
            raise StorageError(f"Ошибка сервиса групп: {response.status_code}")
        return bool(response.json().get("is_member", True))

    async def get_group(self, group_id: UUID) -> GroupInfo | None:
        response = await self._request("GET", f"/groups/{group_id}")
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise StorageError(f"Ошибка сервиса групп: {response.status_code}")
        return GroupInfo(**response.json())

    async def get_member_ids(self, group_id: UUID) -> list[int]:
        data = await self._get(f"/groups/{group_id}/members")
        return [int(member_id) for member_id in data.get("user_ids", [])]

    async def get_profiles(self, user_ids: list[int]) -> dict[int, MemberProfile]:
        """Профили пользователей по ID; отсутствующие в ответе пропускаются."""
        if not user_ids:
            return {}
        data = await self._post("/users/profiles", json={"user_ids": user_ids})
        profiles = [MemberProfile(**item) for item in data.get("profiles", [])]
        return {profile.user_id: profile for profile in profiles}

    async def get_notification_settings(self, user_ids: list[int]) -> dict[int, MemberNotificationSettings]:
        """Настройки уведомлений; пользователи без настроек в словарь не попадают."""
        if not user_ids:
            return {}
        data = await self._post("/users/notification-settings", json={"user_ids": user_ids})
        items = [MemberNotificationSettings(**item) for item in data.get("settings", [])]
        return {item.user_id: item for item in items}

    async def get_group_names(self, group_ids: list[UUID]) -> dict[UUID, str]:
        """Названия групп по ID; удалённые группы пропускаются."""
        unique_ids = list(dict.fromkeys(group_ids))
        groups = await asyncio.gather(*(self.get_group(group_id) for group_id in unique_ids))
        return {group.id: group.name for group in groups if group is not None}
