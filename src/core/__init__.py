"""Core module - Configuration, database and the lead state machine."""

from src.core.config import get_settings, Settings, normalize_phone_number
from src.core.database import DatabaseService, db_service

__all__ = [
    "get_settings",
    "Settings",
    "normalize_phone_number",
    "DatabaseService",
    "db_service",
]
