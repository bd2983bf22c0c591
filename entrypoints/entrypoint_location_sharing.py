#!/usr/bin/env python3
# entrypoint_location_sharing.py
"""
Точка входа для Location Sharing Service.
Порт: 8092
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
sys.path.insert(0, str(Path(__file__).parent.parent.resolve()))

import uvicorn

from src.config import settings
from src.common.logger import log_info
from src.common.constants import TypeMsg


async def main() -> None:
    """Запуск Location Sharing Service."""
    await log_info(
        f"Запуск Location Sharing Service на порту {settings.deployment.LOCATION_SHARING_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.location_sharing.app:app",
        host="0.0.0.0",
        port=settings.deployment.LOCATION_SHARING_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
