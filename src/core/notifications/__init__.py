# src/core/notifications/__init__.py
"""
Домен уведомлений о шаринге геолокации.
"""

from src.core.notifications.rate_limiter import NotificationRateLimiter, RateLimitMarker
from src.core.notifications.service import LocationSharingNotifier, NotificationResult

__all__ = [
    "NotificationRateLimiter",
    "RateLimitMarker",
    "LocationSharingNotifier",
    "NotificationResult",
]
