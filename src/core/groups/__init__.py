# src/core/groups/__init__.py
"""
Справочник групп (внешний сервис): членство, составы, профили.
"""

from src.core.groups.client import GroupDirectoryClient
from src.core.groups.models import GroupInfo, MemberProfile, MemberNotificationSettings

__all__ = [
    "GroupDirectoryClient",
    "GroupInfo",
    "MemberProfile",
    "MemberNotificationSettings",
]
