# src/core/location/repository.py
"""
Репозиторий сессий геолокации (таблица location_sessions).
Запись — один атомарный upsert по (user_id, event_id); чтение учитывает expires_at.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from asyncpg import Record

from src.common.constants import SessionStatus
from src.core.location.models import LocationSession, PositionReport
from src.infra.database import DatabaseManager, storage_guard


_SESSION_COLUMNS = """
    user_id, event_id, latitude, longitude, accuracy, heading, speed, altitude,
    status, last_updated, expires_at
"""


def _row_to_session(row: Record) -> LocationSession:
    return LocationSession(
        user_id=row["user_id"],
        event_id=row["event_id"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        accuracy=row["accuracy"],
        heading=row["heading"],
        speed=row["speed"],
        altitude=row["altitude"],
        status=SessionStatus(row["status"]),
        last_updated=row["last_updated"],
        expires_at=row["expires_at"],
    )


def _affected_rows(status: str) -> int:
    """Количество строк из статуса asyncpg ('UPDATE 3' -> 3)."""
    try:
        return int(status.split()[-1])
    except (ValueError, IndexError, AttributeError):
        return 0


class LocationSessionRepository:
    """Репозиторий сессий геолокации."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def upsert(
        self,
        user_id: int,
        event_id: UUID,
        report: PositionReport,
        ttl_hours: int,
    ) -> LocationSession:
        """
        Создаёт или перезаписывает сессию пользователя на событии.

        Время last_updated и expires_at берётся у PostgreSQL в момент записи,
        поэтому при гонке двух отчётов побеждает последний записанный.
        """
        async with storage_guard("upsert location session"):
            row = await self._db.fetchrow(
                f"""
                INSERT INTO location_sessions (
                    user_id, event_id, latitude, longitude, accuracy, heading, speed, altitude,
                    status, last_updated, expires_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, 'active', now(),
                        now() + make_interval(hours => $9))
                ON CONFLICT (user_id, event_id) DO UPDATE SET
                    latitude = EXCLUDED.latitude,
                    longitude = EXCLUDED.longitude,
                    accuracy = EXCLUDED.accuracy,
                    heading = EXCLUDED.heading,
                    speed = EXCLUDED.speed,
                    altitude = EXCLUDED.altitude,
                    status = 'active',
                    last_updated = EXCLUDED.last_updated,
                    expires_at = EXCLUDED.expires_at
                RETURNING {_SESSION_COLUMNS}
                """,
                user_id,
                event_id,
                report.latitude,
                report.longitude,
                report.accuracy,
                report.heading,
                report.speed,
                report.altitude,
                ttl_hours,
            )

        return _row_to_session(row)

    async def stop(self, user_id: int, event_id: UUID) -> int:
        """Переводит активную сессию в expired. Возвращает число изменённых строк (0 или 1)."""
        async with storage_guard("stop location session"):
            status = await self._db.execute(
                """
                UPDATE location_sessions
                SET status = 'expired', last_updated = now()
                WHERE user_id = $1 AND event_id = $2 AND status = 'active'
                """,
                user_id,
                event_id,
            )

        return _affected_rows(status)

    async def get_active(self, user_id: int, event_id: UUID) -> Optional[LocationSession]:
        """Сессия пользователя на событии, если она активна и не истекла."""
        async with storage_guard("get location session"):
            row = await self._db.fetchrow(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM location_sessions
                WHERE user_id = $1 AND event_id = $2
                  AND status = 'active' AND expires_at >= now()
                """,
                user_id,
                event_id,
            )

        return _row_to_session(row) if row else None

    async def list_active_for_user(self, user_id: int) -> list[LocationSession]:
        """Все активные сессии пользователя по всем событиям."""
        async with storage_guard("list user sessions"):
            rows = await self._db.fetch(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM location_sessions
                WHERE user_id = $1 AND status = 'active' AND expires_at >= now()
                ORDER BY last_updated DESC
                """,
                user_id,
            )

        return [_row_to_session(row) for row in rows]

    async def list_active_for_users(self, event_id: UUID, user_ids: list[int]) -> list[LocationSession]:
        """Активные сессии указанных пользователей на событии."""
        if not user_ids:
            return []

        async with storage_guard("list event sessions"):
            rows = await self._db.fetch(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM location_sessions
                WHERE event_id = $1 AND user_id = ANY($2::bigint[])
                  AND status = 'active' AND expires_at >= now()
                """,
                event_id,
                user_ids,
            )

        return [_row_to_session(row) for row in rows]

    async def expire_stale(self) -> int:
        """Помечает expired все активные сессии с истёкшим сроком. Возвращает их число."""
        async with storage_guard("expire stale sessions"):
            status = await self._db.execute(
                """
                UPDATE location_sessions
                SET status = 'expired'
                WHERE status = 'active' AND expires_at < now()
                """
            )

        return _affected_rows(status)
