# src/services/location_sharing/auth.py
"""
Проверка Telegram Mini App initData.
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel


class TelegramUser(BaseModel):
    """Данные пользователя из initData."""
    id: int
    first_name: str
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None
    photo_url: str | None = None


class TelegramInitData(BaseModel):
    """Проверенные данные initData."""
    user: TelegramUser
    auth_date: datetime
    query_id: str | None = None
    hash: str


class TelegramAuthError(Exception):
    """initData не прошли проверку."""


def _secret_key(bot_token: str) -> bytes:
    return hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()


def sign_init_data(fields: dict[str, str], bot_token: str) -> str:
    """
    Подписывает поля initData так же, как это делает Telegram.
    Нужна для локальной разработки и тестов.
    """
    data_check_string = "\n".join(f"{key}={fields[key]}" for key in sorted(fields))
    signature = hmac.new(_secret_key(bot_token), data_check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode({**fields, "hash": signature})


def validate_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int = 86400,
) -> TelegramInitData:
    """
    Проверяет подпись и возраст initData.

    Args:
        init_data: URL-encoded строка Telegram.WebApp.initData
        bot_token: Токен бота
        max_age_seconds: Максимальный возраст данных

    Raises:
        TelegramAuthError: подпись неверна, данные устарели или неполны
    """
    if not init_data:
        raise TelegramAuthError("Пустые initData")
    if not bot_token:
        raise TelegramAuthError("BOT_TOKEN не настроен")

    fields = dict(parse_qsl(init_data, keep_blank_values=True))

    received_hash = fields.pop("hash", None)
    if not received_hash:
        raise TelegramAuthError("Отсутствует hash в initData")

    data_check_string = "\n".join(f"{key}={fields[key]}" for key in sorted(fields))
    calculated_hash = hmac.new(
        _secret_key(bot_token),
        data_check_string.encode(),
        hashlib.sha256,
    ).hexdigest()

    if not hmac.compare_digest(calculated_hash, received_hash):
        raise TelegramAuthError("Невалидный hash initData")

    try:
        auth_date = datetime.fromtimestamp(int(fields["auth_date"]), tz=timezone.utc)
    except (KeyError, ValueError) as e:
        raise TelegramAuthError("Некорректный auth_date в initData") from e

    if datetime.now(timezone.utc) - auth_date > timedelta(seconds=max_age_seconds):
        raise TelegramAuthError("initData устарели")

    if "user" not in fields:
        raise TelegramAuthError("Отсутствует user в initData")

    try:
        user = TelegramUser(**json.loads(fields["user"]))
    except (ValueError, TypeError) as e:
        raise TelegramAuthError(f"Некорректный user в initData: {e}") from e

    return TelegramInitData(
        user=user,
        auth_date=auth_date,
        query_id=fields.get("query_id"),
        hash=received_hash,
    )
