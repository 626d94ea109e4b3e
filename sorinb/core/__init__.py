"""Core app configuration and database."""

from sorinb.core.config import Settings, get_settings
from sorinb.core.database import Database, get_db

__all__ = ["Database", "Settings", "get_settings", "get_db"]
