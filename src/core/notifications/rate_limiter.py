# src/core/notifications/rate_limiter.py
"""
Ограничитель частоты уведомлений о начале шаринга.

Две отдельные операции: check_window (чтение) и record_marker (запись).
Между ними нет блокировки: два почти одновременных включения шаринга
могут оба пройти проверку, и группа получит одно лишнее уведомление.
Пропуск уведомления при этом невозможен.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from src.common.constants import RATE_LIMIT_KEY_PREFIX
from src.common.logger import log_debug
from src.infra.redis_client import RedisClient


@dataclass(frozen=True)
class RateLimitMarker:
    """Отметка об отправленном уведомлении (user, group, kind, время)."""
    user_id: int
    group_id: UUID
    kind: str
    notified_at: datetime

    def to_dict(self) -> dict[str, str | int]:
        return {
            "user_id": self.user_id,
            "group_id": str(self.group_id),
            "kind": self.kind,
            "notified_at": self.notified_at.isoformat(),
        }


class NotificationRateLimiter:
    """Маркеры в Redis с TTL, равным окну ограничения."""

    def __init__(self, redis: RedisClient, window_minutes: int = 5) -> None:
        self._redis = redis
        self._window = timedelta(minutes=window_minutes)

    @property
    def window(self) -> timedelta:
        return self._window

    @staticmethod
    def _key(user_id: int, group_id: UUID, kind: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}:{kind}:{user_id}:{group_id}"

    async def check_window(
        self,
        user_id: int,
        group_id: UUID,
        kind: str,
        now: datetime | None = None,
    ) -> bool:
        """
        True, если уведомление уже отправлялось в пределах окна.
        Время маркера сверяется явно: TTL в Redis лишь убирает старые ключи.
        """
        now = now or datetime.now(timezone.utc)
        marker = await self._redis.get_json(self._key(user_id, group_id, kind))
        if not isinstance(marker, dict) or "notified_at" not in marker:
            return False

        try:
            notified_at = datetime.fromisoformat(marker["notified_at"])
        except (TypeError, ValueError):
            return False

        within = now - notified_at < self._window
        if within:
            await log_debug(f"Маркер уведомления найден: user={user_id}, group={group_id}, kind={kind}")
        return within

    async def record_marker(
        self,
        user_id: int,
        group_id: UUID,
        kind: str,
        now: datetime | None = None,
    ) -> RateLimitMarker:
        """Записывает маркер; следующее окно начинается с этого момента."""
        marker = RateLimitMarker(
            user_id=user_id,
            group_id=group_id,
            kind=kind,
            notified_at=now or datetime.now(timezone.utc),
        )
        await self._redis.set_json(
            self._key(user_id, group_id, kind),
            marker.to_dict(),
            ttl=int(self._window.total_seconds()),
        )
        return marker
