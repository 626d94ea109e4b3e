"""Schemas for location readings (authenticated and anonymous ingestion)."""

import math
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _to_number(value: object) -> float:
    """Accept ints, floats and numeric strings; reject bools, blanks, NaN and infinities."""
    if isinstance(value, bool) or value is None:
        raise ValueError("must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            raise ValueError("must be a number") from None
    else:
        raise ValueError("must be a number")
    if not math.isfinite(number):
        raise ValueError("must be a finite number")
    return number


def _to_optional_number(value: object) -> float | None:
    # Optional device fields are best-effort: anything unusable is stored as NULL.
    try:
        return _to_number(value)
    except ValueError:
        return None


class LocationCreate(BaseModel):
    """
    One reading as sent by a device.

    lat/lng are required; the remaining fields mirror the browser
    GeolocationCoordinates and are dropped when not numeric.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    lat: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in degrees")
    accuracy: float | None = None
    altitude: float | None = None
    altitude_accuracy: float | None = Field(default=None, alias="altitudeAccuracy")
    heading: float | None = None
    speed: float | None = None
    timestamp: int | None = Field(default=None, description="Device time, epoch milliseconds")

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def coerce_coordinate(cls, v: object) -> float:
        return _to_number(v)

    @field_validator("accuracy", "altitude", "altitude_accuracy", "heading", "speed", mode="before")
    @classmethod
    def coerce_optional(cls, v: object) -> float | None:
        return _to_optional_number(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def coerce_timestamp(cls, v: object) -> int | None:
        number = _to_optional_number(v)
        return int(number) if number is not None else None


class LocationOut(BaseModel):
    """Stored reading as returned to clients."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    lat: float
    lng: float
    accuracy: float | None = None
    altitude: float | None = None
    altitude_accuracy: float | None = Field(default=None, serialization_alias="altitudeAccuracy")
    heading: float | None = None
    speed: float | None = None
    timestamp: int | None = Field(
        default=None,
        validation_alias=AliasChoices("client_timestamp", "timestamp"),
    )
    recorded_at: datetime | None = None
    user_id: int | None = None


class LocationsListResponse(BaseModel):
    """Response for GET /api/locations: the caller's own rows, newest first."""

    count: int
    data: list[LocationOut]


class GpsSavedResponse(BaseModel):
    """Response for the anonymous /gps ingestion path."""

    ok: bool = True
    saved: LocationOut
