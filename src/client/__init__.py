# src/client/__init__.py
"""
Клиентский SDK шаринга геолокации: HTTP клиент, источник позиции, watch loop.
"""

from src.common.constants import NearbyState
from src.client.api_client import LocationSharingClient, classify_nearby
from src.client.errors import (
    ApiError,
    ApiValidationError,
    ApiUnauthenticatedError,
    ApiSharingNotEnabledError,
    ApiNotGroupMemberError,
    ApiUnavailableError,
    WatchError,
    PermissionDeniedError,
    PositionUnavailableError,
    PositionTimeoutError,
)
from src.client.position_source import PositionFix, PositionOptions, PositionSource, StreamPositionSource
from src.client.watch_loop import WatchLoop, WatchSession, WatchState

__all__ = [
    "NearbyState",
    "LocationSharingClient",
    "classify_nearby",
    "ApiError",
    "ApiValidationError",
    "ApiUnauthenticatedError",
    "ApiSharingNotEnabledError",
    "ApiNotGroupMemberError",
    "ApiUnavailableError",
    "WatchError",
    "PermissionDeniedError",
    "PositionUnavailableError",
    "PositionTimeoutError",
    "PositionFix",
    "PositionOptions",
    "PositionSource",
    "StreamPositionSource",
    "WatchLoop",
    "WatchSession",
    "WatchState",
]
