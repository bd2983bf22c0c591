# tests/core/test_distance.py
"""
Тесты для расчёта расстояния Haversine.
"""

import pytest

from src.core.geo import haversine_meters
from src.core.geo.distance import EARTH_RADIUS_METERS

METERS_PER_DEGREE = EARTH_RADIUS_METERS * 3.141592653589793 / 180


class TestHaversine:

    def test_same_point_is_zero(self) -> None:
        assert haversine_meters(48.1351, 11.5820, 48.1351, 11.5820) == 0.0

    def test_300_meters_north(self) -> None:
        """Смещение по меридиану на 300 м."""
        lat2 = 48.1351 + 300 / METERS_PER_DEGREE

        assert haversine_meters(48.1351, 11.5820, lat2, 11.5820) == pytest.approx(300, abs=0.5)

    def test_symmetric(self) -> None:
        a = haversine_meters(48.1351, 11.5820, 48.1400, 11.5900)
        b = haversine_meters(48.1400, 11.5900, 48.1351, 11.5820)

        assert a == pytest.approx(b)

    def test_known_city_distance(self) -> None:
        """Мюнхен - Берлин около 504 км."""
        distance = haversine_meters(48.1351, 11.5820, 52.5200, 13.4050)

        assert distance == pytest.approx(504_000, rel=0.01)

    def test_antipodes_do_not_fail(self) -> None:
        distance = haversine_meters(0.0, 0.0, 0.0, 180.0)

        assert distance == pytest.approx(EARTH_RADIUS_METERS * 3.141592653589793)
