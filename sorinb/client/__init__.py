"""Python client for the SorinB API: HTTP client, page state and geolocation tracker."""

from sorinb.client.api import ApiClient, ApiError
from sorinb.client.shell import Shell
from sorinb.client.tracker import (
    GeolocationError,
    GeoStatus,
    GeoTracker,
    Position,
    PositionOptions,
    SaveStatus,
    SecureContext,
    TrackerEvent,
)

__all__ = [
    "ApiClient",
    "ApiError",
    "GeolocationError",
    "GeoStatus",
    "GeoTracker",
    "Position",
    "PositionOptions",
    "SaveStatus",
    "SecureContext",
    "Shell",
    "TrackerEvent",
]
