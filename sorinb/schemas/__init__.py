"""Pydantic request/response schemas."""

from sorinb.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MeResponse,
    OkResponse,
    RegisterRequest,
    UserOut,
    UsersListResponse,
    UserUpdateRequest,
)
from sorinb.schemas.data import DataResponse, QueryRequest, TableName
from sorinb.schemas.health import HealthResponse
from sorinb.schemas.locations import (
    GpsSavedResponse,
    LocationCreate,
    LocationOut,
    LocationsListResponse,
)

__all__ = [
    "AuthResponse",
    "CurrentUser",
    "DataResponse",
    "GpsSavedResponse",
    "HealthResponse",
    "LocationCreate",
    "LocationOut",
    "LocationsListResponse",
    "LoginRequest",
    "MeResponse",
    "OkResponse",
    "QueryRequest",
    "RegisterRequest",
    "TableName",
    "UserOut",
    "UsersListResponse",
    "UserUpdateRequest",
]
