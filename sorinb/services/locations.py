"""Persistence for location readings."""

import logging

from sqlalchemy.orm import Session

from sorinb.models import LocationReading
from sorinb.schemas.locations import LocationCreate

logger = logging.getLogger(__name__)


def save_reading(session: Session, reading: LocationCreate, user_id: int | None) -> LocationReading:
    """Insert one reading and commit. user_id is None for anonymous ingestion."""
    row = LocationReading(
        lat=reading.lat,
        lng=reading.lng,
        accuracy=reading.accuracy,
        altitude=reading.altitude,
        altitude_accuracy=reading.altitude_accuracy,
        heading=reading.heading,
        speed=reading.speed,
        client_timestamp=reading.timestamp,
        user_id=user_id,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    logger.debug("Saved location id=%s user_id=%s", row.id, user_id)
    return row


def list_readings(session: Session, user_id: int, limit: int) -> list[LocationReading]:
    """Newest readings owned by user_id. Anonymous rows never match."""
    return (
        session.query(LocationReading)
        .filter(LocationReading.user_id == user_id)
        .order_by(LocationReading.recorded_at.desc(), LocationReading.id.desc())
        .limit(limit)
        .all()
    )
