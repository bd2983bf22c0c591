# src/services/location_sharing/app.py
"""
FastAPI приложение сервиса шаринга геолокации.

Все endpoints API требуют заголовок X-Telegram-Init-Data.
Ошибки возвращаются в формате ErrorResponse {error_code, message, details}.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.common.constants import TypeMsg
from src.common.exceptions import LocationSharingError, ValidationError
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings
from src.core.location.repository import LocationSessionRepository
from src.services.location_sharing import dependencies
from src.services.location_sharing.routes import router
from src.services.location_sharing.schemas import HealthStatus
from src.services.location_sharing.sweeper import SessionSweeper


SERVICE_NAME = "location_sharing"

_started_at = time.monotonic()


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    setup_logging()
    await dependencies.init_dependencies()

    sweeper: SessionSweeper | None = None
    if settings.location.SWEEP_ENABLED:
        sweeper = SessionSweeper(
            LocationSessionRepository(dependencies.get_db()),
            interval_seconds=settings.location.SWEEP_INTERVAL_SECONDS,
        )
        sweeper.start()

    await log_info(f"{SERVICE_NAME} запущен", type_msg=TypeMsg.INFO)

    yield

    if sweeper is not None:
        await sweeper.stop()
    await dependencies.close_dependencies()
    await log_info(f"{SERVICE_NAME} остановлен", type_msg=TypeMsg.INFO)


# === APP ===

app = FastAPI(
    title="Location Sharing",
    description="Шаринг геолокации участников фестиваля с группами и поиск «кто рядом».",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS для Mini App (загружается с домена Telegram)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


# === ERROR HANDLERS ===

@app.exception_handler(LocationSharingError)
async def location_sharing_error_handler(request: Request, exc: LocationSharingError) -> JSONResponse:
    if exc.status_code >= 500:
        await log_error(f"{request.method} {request.url.path}: {exc.error_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details: dict[str, Any] = {}
    for error in exc.errors():
        # loc: ("body", "latitude") / ("query", "radius_meters")
        field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
        details[field] = error["msg"]

    error = ValidationError("Некорректный запрос", details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса и его зависимостей."""
    checks = {
        "postgres": dependencies.get_db,
        "redis": dependencies.get_redis,
        "rabbitmq": dependencies.get_event_bus,
    }

    states: dict[str, str] = {}
    for name, provider in checks.items():
        try:
            healthy = await provider().health_check()
        except RuntimeError:
            healthy = False
        states[name] = "healthy" if healthy else "unhealthy"

    return HealthStatus(
        service=SERVICE_NAME,
        status="healthy" if all(state == "healthy" for state in states.values()) else "degraded",
        version=settings.system.VERSION,
        uptime_seconds=round(time.monotonic() - _started_at, 1),
        dependencies=states,
    )
