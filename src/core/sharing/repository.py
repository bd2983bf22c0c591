# src/core/sharing/repository.py
"""
Репозиторий настроек шаринга (таблица location_sharing_preferences).
"""

from __future__ import annotations

from uuid import UUID

from asyncpg import Record

from src.core.sharing.models import PreferenceUpdate, PreferenceWriteResult, SharingPreference
from src.infra.database import DatabaseManager, storage_guard


def _row_to_preference(row: Record) -> SharingPreference:
    return SharingPreference(
        user_id=row["user_id"],
        group_id=row["group_id"],
        event_id=row["event_id"],
        sharing_enabled=row["sharing_enabled"],
        auto_enable_on_checkin=row["auto_enable_on_checkin"],
        notification_enabled=row["notification_enabled"],
        updated_at=row["updated_at"],
    )


class SharingPreferenceRepository:
    """Репозиторий настроек шаринга."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int, event_id: UUID) -> list[SharingPreference]:
        async with storage_guard("list sharing preferences"):
            rows = await self._db.fetch(
                """
                SELECT user_id, group_id, event_id, sharing_enabled, auto_enable_on_checkin,
                       notification_enabled, updated_at
                FROM location_sharing_preferences
                WHERE user_id = $1 AND event_id = $2
                """,
                user_id,
                event_id,
            )

        return [_row_to_preference(row) for row in rows]

    async def list_enabled_group_ids(self, user_id: int, event_id: UUID) -> list[UUID]:
        """Группы, с которыми пользователь делится позицией на событии."""
        async with storage_guard("list enabled groups"):
            rows = await self._db.fetch(
                """
                SELECT group_id
                FROM location_sharing_preferences
                WHERE user_id = $1 AND event_id = $2 AND sharing_enabled
                """,
                user_id,
                event_id,
            )

        return [row["group_id"] for row in rows]

    async def list_enabled_sharers(
        self,
        event_id: UUID,
        group_ids: list[UUID],
        exclude_user_id: int,
    ) -> list[tuple[int, UUID]]:
        """Пары (user_id, group_id) других пользователей, включивших шаринг в этих группах."""
        if not group_ids:
            return []

        async with storage_guard("list group sharers"):
            rows = await self._db.fetch(
                """
                SELECT user_id, group_id
                FROM location_sharing_preferences
                WHERE event_id = $1 AND group_id = ANY($2::uuid[])
                  AND sharing_enabled AND user_id <> $3
                """,
                event_id,
                group_ids,
                exclude_user_id,
            )

        return [(row["user_id"], row["group_id"]) for row in rows]

    async def list_notifications_muted(self, group_id: UUID, event_id: UUID, user_ids: list[int]) -> set[int]:
        """Участники, выключившие уведомления о шаринге для группы. Нет строки = уведомления включены."""
        if not user_ids:
            return set()

        async with storage_guard("list muted members"):
            rows = await self._db.fetch(
                """
                SELECT user_id
                FROM location_sharing_preferences
                WHERE group_id = $1 AND event_id = $2 AND user_id = ANY($3::bigint[])
                  AND NOT notification_enabled
                """,
                group_id,
                event_id,
                user_ids,
            )

        return {row["user_id"] for row in rows}

    async def upsert(self, user_id: int, update: PreferenceUpdate) -> PreferenceWriteResult:
        """
        Атомарно записывает настройку и возвращает предыдущее значение sharing_enabled.
        Строка блокируется FOR UPDATE до конца транзакции.
        """
        async with storage_guard("upsert sharing preference"):
            async with self._db.transaction() as conn:
                previous = await conn.fetchval(
                    """
                    SELECT sharing_enabled
                    FROM location_sharing_preferences
                    WHERE user_id = $1 AND group_id = $2 AND event_id = $3
                    FOR UPDATE
                    """,
                    user_id,
                    update.group_id,
                    update.event_id,
                )
                row = await conn.fetchrow(
                    """
                    INSERT INTO location_sharing_preferences (
                        user_id, group_id, event_id, sharing_enabled,
                        auto_enable_on_checkin, notification_enabled, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, now())
                    ON CONFLICT (user_id, group_id, event_id) DO UPDATE SET
                        sharing_enabled = EXCLUDED.sharing_enabled,
                        auto_enable_on_checkin = EXCLUDED.auto_enable_on_checkin,
                        notification_enabled = EXCLUDED.notification_enabled,
                        updated_at = EXCLUDED.updated_at
                    RETURNING user_id, group_id, event_id, sharing_enabled,
                              auto_enable_on_checkin, notification_enabled, updated_at
                    """,
                    user_id,
                    update.group_id,
                    update.event_id,
                    update.sharing_enabled,
                    update.auto_enable_on_checkin,
                    update.notification_enabled,
                )

        return PreferenceWriteResult(
            preference=_row_to_preference(row),
            previous_enabled=previous,
        )
