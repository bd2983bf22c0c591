# tests/core/test_sharing_service.py
"""
Тесты для сервиса настроек шаринга.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from src.common.exceptions import NotGroupMemberError, StorageError
from src.core.sharing import PreferenceUpdate, SharingPreferenceService

from fakes import EVENT_ID, GROUP_CAMP, GROUP_FRIENDS


def _update(group_id=GROUP_FRIENDS, enabled: bool = True) -> PreferenceUpdate:
    return PreferenceUpdate(group_id=group_id, event_id=EVENT_ID, sharing_enabled=enabled)


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(preference_repo, groups, notifier) -> SharingPreferenceService:
    return SharingPreferenceService(preference_repo, groups, notifier)


class TestSetPreference:

    @pytest.mark.asyncio
    async def test_non_member_rejected(self, service, preference_repo, notifier) -> None:
        with pytest.raises(NotGroupMemberError) as exc_info:
            await service.set_preference(4, _update(GROUP_FRIENDS))

        assert exc_info.value.status_code == 403
        assert preference_repo.preferences == {}
        notifier.notify_share_started.assert_not_called()

    @pytest.mark.asyncio
    async def test_enable_triggers_notification(self, service, notifier) -> None:
        preference = await service.set_preference(1, _update())
        await service.drain()

        assert preference.sharing_enabled is True
        notifier.notify_share_started.assert_awaited_once_with(1, GROUP_FRIENDS, EVENT_ID)

    @pytest.mark.asyncio
    async def test_repeated_enable_notifies_once(self, service, notifier) -> None:
        """true -> true не является переходом."""
        await service.set_preference(1, _update())
        await service.set_preference(1, _update())
        await service.drain()

        assert notifier.notify_share_started.await_count == 1

    @pytest.mark.asyncio
    async def test_disable_is_silent(self, service, preference_repo, notifier) -> None:
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)

        preference = await service.set_preference(1, _update(enabled=False))
        await service.drain()

        assert preference.sharing_enabled is False
        notifier.notify_share_started.assert_not_called()

    @pytest.mark.asyncio
    async def test_each_off_on_transition_reaches_notifier(self, service, notifier) -> None:
        """Ограничение частоты делает notifier, сервис сообщает о каждом переходе."""
        for enabled in (True, False, True):
            await service.set_preference(1, _update(enabled=enabled))
        await service.drain()

        assert notifier.notify_share_started.await_count == 2

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_update(self, service, notifier) -> None:
        notifier.notify_share_started.side_effect = StorageError("groups down")

        with patch("src.core.sharing.service.log_error", new_callable=AsyncMock) as mock_log:
            preference = await service.set_preference(1, _update())
            await service.drain()

        assert preference.sharing_enabled is True
        mock_log.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_membership_lookup_failure(self, service, groups) -> None:
        groups.fail = True

        with pytest.raises(StorageError):
            await service.set_preference(1, _update())


class TestGetPreferences:

    @pytest.mark.asyncio
    async def test_enriched_and_sorted(self, service, preference_repo) -> None:
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(1, GROUP_CAMP, EVENT_ID, enabled=False)

        preferences = await service.get_preferences(1, EVENT_ID)

        assert [p.group_name for p in preferences] == ["camp", "Friends"]
        assert [p.sharing_enabled for p in preferences] == [False, True]

    @pytest.mark.asyncio
    async def test_empty(self, service) -> None:
        assert await service.get_preferences(1, EVENT_ID) == []
