# src/common/__init__.py
"""
Общие утилиты, константы, ошибки и логгер.
"""

from src.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from src.common.constants import TypeMsg, SessionStatus, SharingAction
from src.common.exceptions import (
    LocationSharingError,
    ValidationError,
    UnauthenticatedError,
    SharingNotEnabledError,
    NotGroupMemberError,
    StorageError,
)
from src.common.localization import get_text, load_lang_dict

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "SessionStatus",
    "SharingAction",
    "LocationSharingError",
    "ValidationError",
    "UnauthenticatedError",
    "SharingNotEnabledError",
    "NotGroupMemberError",
    "StorageError",
    "get_text",
    "load_lang_dict",
]
