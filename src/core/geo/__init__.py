# src/core/geo/__init__.py
"""
Геометрия: расстояние между координатами.
"""

from src.core.geo.distance import haversine_meters, EARTH_RADIUS_METERS

__all__ = [
    "haversine_meters",
    "EARTH_RADIUS_METERS",
]
