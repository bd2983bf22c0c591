# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины — config/config.json.
Секретные данные и хосты переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "festival_location_sharing"
    VERSION: str = "0.3.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Хосты и порты сервисов."""
    LOCATION_SHARING_PORT: int = 8092
    GROUPS_SERVICE_HOST: str = "groups_service"
    GROUPS_SERVICE_PORT: int = 8093

    @property
    def groups_service_url(self) -> str:
        """Базовый URL сервиса групп."""
        return f"http://{self.GROUPS_SERVICE_HOST}:{self.GROUPS_SERVICE_PORT}/api/v1"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/location_sharing.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class TelegramSettings(BaseModel):
    """Настройки проверки Telegram Mini App initData."""
    BOT_TOKEN: str = ""
    INIT_DATA_MAX_AGE: int = 86400

    @field_validator("BOT_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает токен из переменных окружения, если не задан."""
        if not v:
            return os.getenv("BOT_TOKEN", "")
        return v


class DomainSettings(BaseModel):
    """Настройки локализации."""
    DEFAULT_LANGUAGE: str = "de"
    SUPPORTED_LANGUAGES: list[str] = Field(default_factory=lambda: ["de", "en", "ru"])


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "festival"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 30
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "festival"
    REDIS_MAX_CONNECTIONS: int = 20

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class RabbitMQSettings(BaseModel):
    """Настройки RabbitMQ."""
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_EXCHANGE: str = "festival.events"
    RABBITMQ_PREFETCH_COUNT: int = 10

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к RabbitMQ."""
        return (
            f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}{self.RABBITMQ_VHOST}"
        )


class LocationSettings(BaseModel):
    """Настройки сессий геолокации и поиска рядом."""
    SESSION_TTL_HOURS: int = Field(default=4, ge=1)
    DEFAULT_RADIUS_METERS: int = 500
    MIN_RADIUS_METERS: int = 1
    MAX_RADIUS_METERS: int = 10000
    SWEEP_ENABLED: bool = True
    SWEEP_INTERVAL_SECONDS: int = Field(default=300, ge=1)


class NotificationSettings(BaseModel):
    """Настройки уведомлений о начале шаринга."""
    RATE_LIMIT_WINDOW_MINUTES: int = Field(default=5, ge=1)
    LOCATION_SHARING_KIND: str = "location_sharing"


class WatchSettings(BaseModel):
    """Параметры клиентского watch loop."""
    HIGH_ACCURACY: bool = True
    MAXIMUM_AGE_SECONDS: float = 60.0
    TIMEOUT_SECONDS: float = 10.0


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    domain: DomainSettings = Field(default_factory=DomainSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    rabbitmq: RabbitMQSettings = Field(default_factory=RabbitMQSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "festival_location_sharing"),
                VERSION=data.get("VERSION", "0.3.0"),
                DEBUG=data.get("DEBUG", False),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                LOCATION_SHARING_PORT=int(os.getenv("LOCATION_SHARING_PORT", data.get("LOCATION_SHARING_PORT", 8092))),
                GROUPS_SERVICE_HOST=os.getenv("GROUPS_SERVICE_HOST", data.get("GROUPS_SERVICE_HOST", "groups_service")),
                GROUPS_SERVICE_PORT=int(os.getenv("GROUPS_SERVICE_PORT", data.get("GROUPS_SERVICE_PORT", 8093))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/location_sharing.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            telegram=TelegramSettings(
                BOT_TOKEN=os.getenv("BOT_TOKEN", data.get("BOT_TOKEN", "")),
                INIT_DATA_MAX_AGE=data.get("INIT_DATA_MAX_AGE", 86400),
            ),
            domain=DomainSettings(
                DEFAULT_LANGUAGE=data.get("DEFAULT_LANGUAGE", "de"),
                SUPPORTED_LANGUAGES=data.get("SUPPORTED_LANGUAGES", ["de", "en", "ru"]),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "festival")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=data.get("REDIS_NAMESPACE", "festival"),
                REDIS_MAX_CONNECTIONS=data.get("REDIS_MAX_CONNECTIONS", 20),
            ),
            rabbitmq=RabbitMQSettings(
                RABBITMQ_HOST=os.getenv("RABBITMQ_HOST", data.get("RABBITMQ_HOST", "localhost")),
                RABBITMQ_PORT=int(os.getenv("RABBITMQ_PORT", data.get("RABBITMQ_PORT", 5672))),
                RABBITMQ_USER=os.getenv("RABBITMQ_USER", data.get("RABBITMQ_USER", "guest")),
                RABBITMQ_PASSWORD=os.getenv("RABBITMQ_PASSWORD", data.get("RABBITMQ_PASSWORD", "guest")),
                RABBITMQ_VHOST=data.get("RABBITMQ_VHOST", "/"),
                RABBITMQ_EXCHANGE=data.get("RABBITMQ_EXCHANGE", "festival.events"),
                RABBITMQ_PREFETCH_COUNT=data.get("RABBITMQ_PREFETCH_COUNT", 10),
            ),
            location=LocationSettings(
                SESSION_TTL_HOURS=data.get("SESSION_TTL_HOURS", 4),
                DEFAULT_RADIUS_METERS=data.get("DEFAULT_RADIUS_METERS", 500),
                MIN_RADIUS_METERS=data.get("MIN_RADIUS_METERS", 1),
                MAX_RADIUS_METERS=data.get("MAX_RADIUS_METERS", 10000),
                SWEEP_ENABLED=data.get("SWEEP_ENABLED", True),
                SWEEP_INTERVAL_SECONDS=data.get("SWEEP_INTERVAL_SECONDS", 300),
            ),
            notifications=NotificationSettings(
                RATE_LIMIT_WINDOW_MINUTES=data.get("RATE_LIMIT_WINDOW_MINUTES", 5),
                LOCATION_SHARING_KIND=data.get("LOCATION_SHARING_KIND", "location_sharing"),
            ),
            watch=WatchSettings(
                HIGH_ACCURACY=data.get("HIGH_ACCURACY", True),
                MAXIMUM_AGE_SECONDS=data.get("MAXIMUM_AGE_SECONDS", 60.0),
                TIMEOUT_SECONDS=data.get("TIMEOUT_SECONDS", 10.0),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
