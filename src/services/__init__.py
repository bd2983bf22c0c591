# src/services/__init__.py
"""
Сервисы приложения.

- location_sharing: HTTP API шаринга геолокации (FastAPI) и фоновая
  очистка истёкших сессий
"""

__all__: list[str] = []
