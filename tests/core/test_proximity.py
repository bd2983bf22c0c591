# tests/core/test_proximity.py
"""
Тесты для поиска «кто рядом».
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from src.common.constants import SessionStatus
from src.common.exceptions import ValidationError
from src.core.geo.distance import EARTH_RADIUS_METERS
from src.core.location import LocationIngestService, PositionReport, ProximityQueryEngine

from fakes import EVENT_ID, GROUP_CAMP, GROUP_FRIENDS, GROUP_STAGE

MUNICH = (48.1351, 11.5820)
METERS_PER_DEGREE = EARTH_RADIUS_METERS * 3.141592653589793 / 180


def north_of(point: tuple[float, float], meters: float) -> tuple[float, float]:
    return point[0] + meters / METERS_PER_DEGREE, point[1]


@pytest.fixture
def engine(session_repo, preference_repo, groups) -> ProximityQueryEngine:
    return ProximityQueryEngine(session_repo, preference_repo, groups, min_radius=1, max_radius=10000)


@pytest.fixture
def ingest(session_repo, preference_repo, groups) -> LocationIngestService:
    return LocationIngestService(session_repo, preference_repo, groups, ttl_hours=4)


class TestRadiusValidation:

    @pytest.mark.parametrize("radius", [0, -5, 10001])
    def test_out_of_bounds(self, engine: ProximityQueryEngine, radius: float) -> None:
        with pytest.raises(ValidationError) as exc_info:
            engine.validate_radius(radius)

        assert "radius_meters" in exc_info.value.details

    @pytest.mark.parametrize("radius", [1, 500, 10000])
    def test_within_bounds(self, engine: ProximityQueryEngine, radius: float) -> None:
        engine.validate_radius(radius)


class TestCallerState:

    @pytest.mark.asyncio
    async def test_caller_without_session(self, engine, preference_repo) -> None:
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)

        result = await engine.nearby(2, EVENT_ID, 500)

        assert result.active_sharing is False
        assert result.current_session is None
        assert result.nearby == []

    @pytest.mark.asyncio
    async def test_caller_session_without_enabled_groups(self, engine, session_repo) -> None:
        session_repo.put(2, EVENT_ID, *MUNICH)

        result = await engine.nearby(2, EVENT_ID, 500)

        assert result.active_sharing is False
        assert result.current_session is not None
        assert result.nearby == []

    @pytest.mark.asyncio
    async def test_nobody_nearby(self, engine, session_repo, preference_repo) -> None:
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)
        session_repo.put(2, EVENT_ID, *MUNICH)

        result = await engine.nearby(2, EVENT_ID, 500)

        assert result.active_sharing is True
        assert result.nearby == []


class TestSharingScenario:

    @pytest.mark.asyncio
    async def test_member_300m_away_is_visible(self, engine, ingest, session_repo, preference_repo) -> None:
        """A включает шаринг и шлёт позицию; B в 300 м видит A в группе Friends."""
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)
        await ingest.report_position(1, EVENT_ID, PositionReport(latitude=MUNICH[0], longitude=MUNICH[1]))
        session_repo.put(2, EVENT_ID, *north_of(MUNICH, 300))

        result = await engine.nearby(2, EVENT_ID, 500)

        assert result.active_sharing is True
        assert [item.user_id for item in result.nearby] == [1]
        match = result.nearby[0]
        assert match.distance_meters == pytest.approx(300, abs=1)
        assert match.sharing_groups == ["Friends"]
        assert match.username == "alice"
        assert match.full_name == "Alice A"

    @pytest.mark.asyncio
    async def test_stopped_sharer_disappears_immediately(self, engine, ingest, session_repo, preference_repo) -> None:
        """После stop_sharing координаты A не видны, хотя срок сессии не истёк."""
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)
        await ingest.report_position(1, EVENT_ID, PositionReport(latitude=MUNICH[0], longitude=MUNICH[1]))
        session_repo.put(2, EVENT_ID, *north_of(MUNICH, 300))
        assert (await engine.nearby(2, EVENT_ID, 500)).nearby

        await ingest.stop_sharing(1, EVENT_ID)
        result = await engine.nearby(2, EVENT_ID, 500)

        assert result.nearby == []
        assert result.active_sharing is True

    @pytest.mark.asyncio
    async def test_outside_radius_is_filtered(self, engine, session_repo, preference_repo) -> None:
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)
        session_repo.put(1, EVENT_ID, *MUNICH)
        session_repo.put(2, EVENT_ID, *north_of(MUNICH, 800))

        assert (await engine.nearby(2, EVENT_ID, 500)).nearby == []
        assert len((await engine.nearby(2, EVENT_ID, 1000)).nearby) == 1


class TestVisibility:

    @pytest.mark.asyncio
    async def test_expired_session_never_visible(self, engine, session_repo, preference_repo) -> None:
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(3, GROUP_FRIENDS, EVENT_ID)
        session_repo.put(2, EVENT_ID, *MUNICH)
        session_repo.put(1, EVENT_ID, *north_of(MUNICH, 50), expires_in=timedelta(seconds=-1))
        session_repo.put(3, EVENT_ID, *north_of(MUNICH, 60), status=SessionStatus.EXPIRED)

        result = await engine.nearby(2, EVENT_ID, 500)

        assert result.nearby == []

    @pytest.mark.asyncio
    async def test_visible_only_through_enabled_group(self, engine, session_repo, preference_repo) -> None:
        """User 1 в Friends и Camp, но делится только с Friends: user 4 (Camp) его не видит."""
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(4, GROUP_CAMP, EVENT_ID)
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)
        session_repo.put(1, EVENT_ID, *MUNICH)
        session_repo.put(2, EVENT_ID, *north_of(MUNICH, 20))
        session_repo.put(4, EVENT_ID, *north_of(MUNICH, 10))

        seen_by_4 = await engine.nearby(4, EVENT_ID, 500)
        seen_by_2 = await engine.nearby(2, EVENT_ID, 500)

        assert seen_by_4.nearby == []
        assert [item.user_id for item in seen_by_2.nearby] == [1]

    @pytest.mark.asyncio
    async def test_candidate_must_enable_same_group(self, engine, session_repo, preference_repo) -> None:
        """Caller делится с Camp, кандидат с Friends: общей включённой группы нет."""
        preference_repo.enable(1, GROUP_CAMP, EVENT_ID)
        preference_repo.enable(2, GROUP_FRIENDS, EVENT_ID)
        session_repo.put(1, EVENT_ID, *MUNICH)
        session_repo.put(2, EVENT_ID, *north_of(MUNICH, 10))

        assert (await engine.nearby(1, EVENT_ID, 500)).nearby == []

    @pytest.mark.asyncio
    async def test_removed_member_not_visible(self, engine, groups, session_repo, preference_repo) -> None:
        """Настройка осталась, но пользователь уже не в группе."""
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(5, GROUP_FRIENDS, EVENT_ID)
        session_repo.put(1, EVENT_ID, *MUNICH)
        session_repo.put(5, EVENT_ID, *north_of(MUNICH, 10))

        assert (await engine.nearby(1, EVENT_ID, 500)).nearby == []

    @pytest.mark.asyncio
    async def test_other_event_not_visible(self, engine, session_repo, preference_repo) -> None:
        from uuid import uuid4

        other_event = uuid4()
        preference_repo.enable(1, GROUP_FRIENDS, EVENT_ID)
        preference_repo.enable(2, GROUP_FRIENDS, other_event)
        session_repo.put(1, EVENT_ID, *MUNICH)
        session_repo.put(2, other_event, *north_of(MUNICH, 10))

        assert (await engine.nearby(1, EVENT_ID, 500)).nearby == []

    @pytest.mark.asyncio
    async def test_all_shared_groups_listed(self, engine, groups, session_repo, preference_repo) -> None:
        groups.add_group(GROUP_STAGE, "Stage crew", EVENT_ID, [1, 2])
        for user_id in (1, 2):
            preference_repo.enable(user_id, GROUP_FRIENDS, EVENT_ID)
            preference_repo.enable(user_id, GROUP_STAGE, EVENT_ID)
        session_repo.put(1, EVENT_ID, *MUNICH)
        session_repo.put(2, EVENT_ID, *north_of(MUNICH, 10))

        result = await engine.nearby(2, EVENT_ID, 500)

        assert result.nearby[0].sharing_groups == ["Friends", "Stage crew"]


class TestOrdering:

    @pytest.mark.asyncio
    async def test_sorted_by_distance_then_user_id(self, engine, groups, session_repo, preference_repo) -> None:
        groups.add_group(GROUP_STAGE, "Stage crew", EVENT_ID, [10, 11, 12, 13])
        for user_id in (10, 11, 12, 13):
            preference_repo.enable(user_id, GROUP_STAGE, EVENT_ID)
        session_repo.put(10, EVENT_ID, *MUNICH)
        session_repo.put(13, EVENT_ID, *north_of(MUNICH, 200))
        session_repo.put(12, EVENT_ID, *north_of(MUNICH, 100))
        session_repo.put(11, EVENT_ID, *north_of(MUNICH, 200))

        result = await engine.nearby(10, EVENT_ID, 500)

        assert [item.user_id for item in result.nearby] == [12, 11, 13]
        distances = [item.distance_meters for item in result.nearby]
        assert distances == sorted(distances)
        assert result.nearby[0].username is None
