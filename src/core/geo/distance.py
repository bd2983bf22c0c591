# src/core/geo/distance.py
"""
Расстояние по дуге большого круга (Haversine) на сфере WGS84.
"""

from __future__ import annotations

import math

# Средний радиус Земли (IUGG), метры
EARTH_RADIUS_METERS = 6371008.8


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Вычисляет расстояние между двумя точками в метрах.
    Точность порядка метров на радиусах до десятков километров.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = (math.sin(dphi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2)

    # min() защищает asin от погрешности округления для антиподов
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return EARTH_RADIUS_METERS * c
