"""Anonymous ingestion path for trackers that cannot authenticate (e.g. GPS loggers)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from sorinb.core.database import get_db
from sorinb.schemas.locations import GpsSavedResponse, LocationCreate, LocationOut
from sorinb.services.locations import save_reading

router = APIRouter()


def _save_anonymous(db: Session, reading: LocationCreate) -> GpsSavedResponse:
    # Rows from this path never carry a user_id, even if the caller sent a token.
    row = save_reading(db, reading, user_id=None)
    return GpsSavedResponse(ok=True, saved=LocationOut.model_validate(row))


@router.post("", response_model=GpsSavedResponse, status_code=status.HTTP_201_CREATED)
def post_gps(
    body: LocationCreate,
    db: Annotated[Session, Depends(get_db)],
) -> GpsSavedResponse:
    """Store one reading from a JSON body, without user association."""
    return _save_anonymous(db, body)


@router.get("", response_model=GpsSavedResponse, status_code=status.HTTP_201_CREATED)
def get_gps(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> GpsSavedResponse:
    """Same as POST, reading the fields from the query string (?lat=..&lng=..)."""
    try:
        reading = LocationCreate.model_validate(dict(request.query_params))
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e
    return _save_anonymous(db, reading)
