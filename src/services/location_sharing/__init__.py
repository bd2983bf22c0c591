# src/services/location_sharing/__init__.py
"""
HTTP сервис шаринга геолокации (FastAPI).
"""
