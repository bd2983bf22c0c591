# src/common/exceptions.py
"""
Иерархия ошибок сервиса геолокации.
Каждая ошибка несёт HTTP статус и стабильный error_code для клиента.
"""

from __future__ import annotations

from typing import Any


class LocationSharingError(Exception):
    """Базовая ошибка подсистемы шаринга геолокации."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.error_code)
        self.message = message or self.error_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Тело ответа в формате ErrorResponse."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LocationSharingError):
    """Некорректные координаты, радиус или идентификатор события."""
    status_code = 400
    error_code = "validation_error"


class UnauthenticatedError(LocationSharingError):
    """Нет или невалиден заголовок с Telegram initData."""
    status_code = 401
    error_code = "unauthenticated"


class SharingNotEnabledError(LocationSharingError):
    """У пользователя нет ни одной группы с включённым шарингом для события."""
    status_code = 403
    error_code = "sharing_not_enabled"


class NotGroupMemberError(LocationSharingError):
    """Пользователь не состоит в группе."""
    status_code = 403
    error_code = "not_group_member"


class StorageError(LocationSharingError):
    """Временная ошибка хранилища или внешнего сервиса."""
    status_code = 500
    error_code = "storage_unavailable"


ERROR_CLASSES: dict[str, type[LocationSharingError]] = {
    cls.error_code: cls
    for cls in (
        ValidationError,
        UnauthenticatedError,
        SharingNotEnabledError,
        NotGroupMemberError,
        StorageError,
    )
}
