"""Authenticated location readings: save one, list your own."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from sorinb.api.deps import get_app_settings, get_current_user, unauthorized
from sorinb.core.config import Settings
from sorinb.core.database import get_db
from sorinb.schemas.auth import CurrentUser
from sorinb.schemas.locations import LocationCreate, LocationOut, LocationsListResponse
from sorinb.services.locations import list_readings, save_reading
from sorinb.services.users import get_by_id

router = APIRouter()


@router.post("", response_model=LocationOut, status_code=status.HTTP_201_CREATED)
def create_location(
    body: LocationCreate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> LocationOut:
    """
    Store one reading owned by the caller.

    lat/lng must be finite numbers within range (400 otherwise); the optional
    accuracy, altitude, altitudeAccuracy, heading, speed and timestamp fields
    are stored when numeric.
    """
    # The token outlives a deleted account; the foreign key would reject the row.
    if get_by_id(db, current_user.id) is None:
        raise unauthorized("User not found")
    row = save_reading(db, body, user_id=current_user.id)
    return LocationOut.model_validate(row)


@router.get("", response_model=LocationsListResponse)
def get_locations(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> LocationsListResponse:
    """The caller's own readings, newest first; limit is capped at LOCATIONS_MAX_LIMIT."""
    effective = min(limit or settings.LOCATIONS_MAX_LIMIT, settings.LOCATIONS_MAX_LIMIT)
    rows = list_readings(db, current_user.id, effective)
    return LocationsListResponse(
        count=len(rows),
        data=[LocationOut.model_validate(r) for r in rows],
    )
