# src/core/location/__init__.py
"""
Домен геолокации: сессии, приём позиций, поиск «кто рядом».
"""

from src.core.location.models import (
    PositionReport,
    LocationSession,
    UpdateLocationResult,
    ProximityResult,
    NearbyResult,
)
from src.core.location.repository import LocationSessionRepository
from src.core.location.service import LocationIngestService, parse_position
from src.core.location.proximity import ProximityQueryEngine

__all__ = [
    "PositionReport",
    "LocationSession",
    "UpdateLocationResult",
    "ProximityResult",
    "NearbyResult",
    "LocationSessionRepository",
    "LocationIngestService",
    "parse_position",
    "ProximityQueryEngine",
]
