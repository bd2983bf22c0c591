# src/core/location/proximity.py
"""
Поиск «кто рядом»: пользователи с активной сессией, видимые через общие группы.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from uuid import UUID

from src.common.exceptions import ValidationError
from src.common.logger import log_debug
from src.core.geo.distance import haversine_meters
from src.core.groups.client import GroupDirectoryClient
from src.core.location.models import NearbyResult, ProximityResult
from src.core.location.repository import LocationSessionRepository
from src.core.sharing.repository import SharingPreferenceRepository


class ProximityQueryEngine:
    """
    Кандидат виден вызывающему, если:
    - оба включили шаринг для одной и той же группы на событии и оба в ней состоят;
    - у кандидата активная (не истёкшая) сессия;
    - расстояние не больше радиуса.
    Результат отсортирован по расстоянию, при равенстве по user_id.
    """

    def __init__(
        self,
        sessions: LocationSessionRepository,
        preferences: SharingPreferenceRepository,
        groups: GroupDirectoryClient,
        min_radius: int = 1,
        max_radius: int = 10000,
    ) -> None:
        self._sessions = sessions
        self._preferences = preferences
        self._groups = groups
        self._min_radius = min_radius
        self._max_radius = max_radius

    def validate_radius(self, radius_meters: float) -> None:
        if not self._min_radius <= radius_meters <= self._max_radius:
            raise ValidationError(
                "Некорректный радиус",
                details={"radius_meters": f"must be between {self._min_radius} and {self._max_radius}"},
            )

    async def nearby(self, caller_id: int, event_id: UUID, radius_meters: float) -> NearbyResult:
        """
        Возвращает пользователей рядом с вызывающим.

        Без активной сессии вызывающего мерить не от чего: пустой список
        и active_sharing=False.
        """
        self.validate_radius(radius_meters)
        now = datetime.now(timezone.utc)

        current = await self._sessions.get_active(caller_id, event_id)
        if current is None or not current.is_active(now):
            return NearbyResult(active_sharing=False)

        caller_groups = await self._preferences.list_enabled_group_ids(caller_id, event_id)
        if not caller_groups:
            return NearbyResult(active_sharing=False, current_session=current)

        visible_through = await self._candidate_groups(caller_id, event_id, caller_groups)
        sessions = await self._sessions.list_active_for_users(event_id, sorted(visible_through))

        matches: list[tuple[float, int]] = []
        by_user = {}
        for session in sessions:
            if not session.is_active(now) or session.user_id not in visible_through:
                continue
            distance = haversine_meters(current.latitude, current.longitude, session.latitude, session.longitude)
            if distance <= radius_meters:
                matches.append((distance, session.user_id))
                by_user[session.user_id] = session

        matches.sort()

        if not matches:
            await log_debug(f"Рядом никого: user={caller_id}, event={event_id}, radius={radius_meters}")
            return NearbyResult(active_sharing=True, current_session=current)

        user_ids = [user_id for _, user_id in matches]
        group_ids = {group_id for user_id in user_ids for group_id in visible_through[user_id]}
        profiles, names = await asyncio.gather(
            self._groups.get_profiles(user_ids),
            self._groups.get_group_names(list(group_ids)),
        )

        nearby = []
        for distance, user_id in matches:
            session = by_user[user_id]
            profile = profiles.get(user_id)
            nearby.append(ProximityResult(
                user_id=user_id,
                username=profile.username if profile else None,
                full_name=profile.full_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
                latitude=session.latitude,
                longitude=session.longitude,
                distance_meters=round(distance, 1),
                last_updated=session.last_updated,
                sharing_groups=sorted(
                    (names[group_id] for group_id in visible_through[user_id] if group_id in names),
                    key=str.lower,
                ),
            ))

        return NearbyResult(active_sharing=True, current_session=current, nearby=nearby)

    async def _candidate_groups(
        self,
        caller_id: int,
        event_id: UUID,
        caller_groups: list[UUID],
    ) -> dict[int, set[UUID]]:
        """user_id кандидата -> все группы, через которые он взаимно виден."""
        rosters = await asyncio.gather(*(self._groups.get_member_ids(group_id) for group_id in caller_groups))
        members_by_group = {
            group_id: set(members)
            for group_id, members in zip(caller_groups, rosters)
            if caller_id in members
        }

        sharers = await self._preferences.list_enabled_sharers(
            event_id, list(members_by_group), exclude_user_id=caller_id
        )

        visible_through: dict[int, set[UUID]] = defaultdict(set)
        for user_id, group_id in sharers:
            if user_id in members_by_group.get(group_id, ()):
                visible_through[user_id].add(group_id)
        return dict(visible_through)
