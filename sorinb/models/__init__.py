"""SQLAlchemy ORM models."""

from sorinb.models.base import Base
from sorinb.models.location import LocationReading
from sorinb.models.user import User

__all__ = ["Base", "LocationReading", "User"]
