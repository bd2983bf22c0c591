# src/client/errors.py
"""
Ошибки клиентского SDK.

WatchError: ошибки устройства (геолокация), каждая своим классом.
ApiError: ошибки HTTP API, класс выбирается по error_code ответа сервера.
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# ОШИБКИ УСТРОЙСТВА
# =============================================================================

class WatchError(Exception):
    """Ошибка получения позиции. terminal=True останавливает подписку."""

    code: str = "watch_error"
    terminal: bool = False

    def __init__(self, message: str = "", terminal: bool | None = None) -> None:
        super().__init__(message or self.code)
        if terminal is not None:
            self.terminal = terminal


class PermissionDeniedError(WatchError):
    """Пользователь запретил доступ к геолокации. Повторять запрос нельзя."""
    code = "permission_denied"
    terminal = True


class PositionUnavailableError(WatchError):
    """Позиция недоступна (нет сигнала, источник остановился)."""
    code = "position_unavailable"


class PositionTimeoutError(WatchError):
    """Позиция не получена за отведённое время."""
    code = "timeout"


# =============================================================================
# ОШИБКИ API
# =============================================================================

class ApiError(Exception):
    """Ошибка ответа API шаринга геолокации."""

    error_code: str = "api_error"

    def __init__(
        self,
        message: str = "",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or self.error_code)
        self.message = message or self.error_code
        self.status_code = status_code
        self.details = details


class ApiValidationError(ApiError):
    error_code = "validation_error"


class ApiUnauthenticatedError(ApiError):
    """Нужно заново войти через Telegram."""
    error_code = "unauthenticated"


class ApiSharingNotEnabledError(ApiError):
    """Нужно включить шаринг хотя бы для одной группы."""
    error_code = "sharing_not_enabled"


class ApiNotGroupMemberError(ApiError):
    error_code = "not_group_member"


class ApiUnavailableError(ApiError):
    """Сервер или сеть временно недоступны; запрос можно повторить."""
    error_code = "storage_unavailable"


_API_ERRORS: dict[str, type[ApiError]] = {
    cls.error_code: cls
    for cls in (
        ApiValidationError,
        ApiUnauthenticatedError,
        ApiSharingNotEnabledError,
        ApiNotGroupMemberError,
        ApiUnavailableError,
    )
}


def api_error_from_response(status_code: int, body: Any) -> ApiError:
    """Создаёт ApiError нужного класса из ответа сервера."""
    error_code = body.get("error_code") if isinstance(body, dict) else None
    message = body.get("message", "") if isinstance(body, dict) else ""
    details = body.get("details") if isinstance(body, dict) else None

    cls = _API_ERRORS.get(error_code or "")
    if cls is None:
        cls = ApiUnavailableError if status_code >= 500 else ApiError

    return cls(message or f"HTTP {status_code}", status_code=status_code, details=details)
