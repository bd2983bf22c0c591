#!/usr/bin/env python3
# entrypoint_session_sweeper.py
"""
Точка входа для отдельного процесса очистки истёкших сессий.
Нужен, когда в API сервисе SWEEP_ENABLED=false (например, при нескольких репликах).
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
sys.path.insert(0, str(Path(__file__).parent.parent.resolve()))

from src.config import settings
from src.common.logger import setup_logging
from src.core.location import LocationSessionRepository
from src.infra.database import get_db, init_db, close_db
from src.services.location_sharing.sweeper import SessionSweeper


async def main() -> None:
    """Запуск sweeper в бесконечном цикле."""
    setup_logging()
    await init_db()

    sweeper = SessionSweeper(
        LocationSessionRepository(get_db()),
        interval_seconds=settings.location.SWEEP_INTERVAL_SECONDS,
    )

    try:
        await sweeper.run_forever()
    finally:
        await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
