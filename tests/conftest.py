# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("BOT_TOKEN", "test_bot_token")
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")

from fakes import (  # noqa: E402
    EVENT_ID,
    GROUP_CAMP,
    GROUP_FRIENDS,
    FakeEventBus,
    FakeGroupDirectory,
    FakeRedis,
    InMemoryPreferenceRepository,
    InMemorySessionRepository,
)


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture(scope="session")
def lang_dict_path(project_root: Path) -> Path:
    """Путь к файлу локализации."""
    return project_root / "config" / "lang_dict.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "PROJECT_NAME": "festival_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "colored",
        "BOT_TOKEN": "test_bot_token",
        "INIT_DATA_MAX_AGE": 3600,
        "DEFAULT_LANGUAGE": "en",
        "SUPPORTED_LANGUAGES": ["de", "en", "ru"],
        "DB_HOST": "db.test",
        "DB_PORT": 5433,
        "DB_NAME": "festival_test",
        "DB_USER": "postgres",
        "DB_PASSWORD": "test_password",
        "REDIS_HOST": "redis.test",
        "REDIS_PORT": 6380,
        "REDIS_DB": 1,
        "REDIS_NAMESPACE": "festival_test",
        "RABBITMQ_HOST": "mq.test",
        "RABBITMQ_EXCHANGE": "festival.test",
        "SESSION_TTL_HOURS": 2,
        "DEFAULT_RADIUS_METERS": 300,
        "MAX_RADIUS_METERS": 5000,
        "RATE_LIMIT_WINDOW_MINUTES": 10,
        "GROUPS_SERVICE_HOST": "groups.test",
        "GROUPS_SERVICE_PORT": 9000,
    }


@pytest.fixture
def mock_lang_dict() -> dict[str, dict[str, str]]:
    """Мок словаря локализации для тестов."""
    return {
        "WELCOME": {
            "ru": "Добро пожаловать!",
            "en": "Welcome!",
            "de": "Willkommen!",
        },
        "GREETING": {
            "ru": "Привет, {name}!",
            "en": "Hello, {name}!",
            "de": "Hallo, {name}!",
        },
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


@pytest.fixture
def temp_lang_dict_file(tmp_path: Path, mock_lang_dict: dict[str, dict[str, str]]) -> Path:
    """Создаёт временный файл локализации."""
    lang_file = tmp_path / "lang_dict.json"
    lang_file.write_text(json.dumps(mock_lang_dict, ensure_ascii=False, indent=2))
    return lang_file


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="UPDATE 0")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_event_bus() -> FakeEventBus:
    return FakeEventBus()


@pytest.fixture
def session_repo() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def preference_repo() -> InMemoryPreferenceRepository:
    return InMemoryPreferenceRepository()


@pytest.fixture
def groups() -> FakeGroupDirectory:
    """Справочник групп: Friends = {1, 2, 3}, Camp = {1, 4}."""
    directory = FakeGroupDirectory()
    directory.add_group(GROUP_FRIENDS, "Friends", EVENT_ID, [1, 2, 3])
    directory.add_group(GROUP_CAMP, "camp", EVENT_ID, [1, 4])
    directory.add_profile(1, username="alice", full_name="Alice A", language="en")
    directory.add_profile(2, username="bob", full_name="Bob B", language="de")
    directory.add_profile(3, username="carol", full_name=None, language="ru")
    directory.add_profile(4, username=None, full_name=None, language="en")
    return directory


# =============================================================================
# УТИЛИТЫ
# =============================================================================

@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def in_one_hour(now: datetime) -> datetime:
    return now + timedelta(hours=1)


# =============================================================================
# ФИКСТУРЫ ПРИЛОЖЕНИЯ
# =============================================================================

TEST_BOT_TOKEN = "test_bot_token"


@pytest.fixture
def notifier_mock() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def api_app(session_repo, preference_repo, groups, notifier_mock):
    """FastAPI приложение с in-memory сервисами вместо PostgreSQL/Redis/RabbitMQ."""
    from src.core.location import LocationIngestService, ProximityQueryEngine
    from src.core.sharing import SharingPreferenceService
    from src.services.location_sharing import dependencies
    from src.services.location_sharing.app import app

    ingest = LocationIngestService(session_repo, preference_repo, groups, ttl_hours=4)
    proximity = ProximityQueryEngine(session_repo, preference_repo, groups, min_radius=1, max_radius=10000)
    preferences = SharingPreferenceService(preference_repo, groups, notifier_mock)

    app.dependency_overrides[dependencies.get_ingest_service] = lambda: ingest
    app.dependency_overrides[dependencies.get_proximity_engine] = lambda: proximity
    app.dependency_overrides[dependencies.get_preference_service] = lambda: preferences
    app.dependency_overrides[dependencies.get_bot_token] = lambda: TEST_BOT_TOKEN
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def init_data_for():
    """Фабрика подписанных initData для пользователя."""
    from src.services.location_sharing.auth import sign_init_data

    def make(user_id: int, auth_date: datetime | None = None) -> str:
        auth_date = auth_date or datetime.now(timezone.utc)
        return sign_init_data(
            {
                "auth_date": str(int(auth_date.timestamp())),
                "query_id": "AAF-test",
                "user": json.dumps({"id": user_id, "first_name": f"User {user_id}", "language_code": "en"}),
            },
            TEST_BOT_TOKEN,
        )

    return make
