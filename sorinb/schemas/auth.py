"""Request/response schemas for auth and admin user endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sorinb.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    is_valid_email,
    normalize_email,
)

Role = Literal["user", "admin"]


def _checked_email(v: str) -> str:
    email = normalize_email(v)
    if not is_valid_email(email):
        raise ValueError("A valid email address is required.")
    return email


class RegisterRequest(BaseModel):
    """Credentials for a new account."""

    email: str = Field(..., description="Email address (case-insensitive)")
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
        description="Password (8-128 characters)",
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _checked_email(v)


class LoginRequest(BaseModel):
    """Credentials for login. Length rules are not revealed here; bad credentials get 401."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class UserOut(BaseModel):
    """Public user fields (never the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: Role
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    """Returned by register and login; token is also set as an HTTP-only cookie."""

    user: UserOut
    token: str


class MeResponse(BaseModel):
    user: UserOut


class OkResponse(BaseModel):
    ok: bool = True


class CurrentUser(BaseModel):
    """Authenticated caller, built from verified token claims."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: Role


class UserUpdateRequest(BaseModel):
    """Admin edit of a user; omitted fields are left unchanged."""

    email: str | None = None
    role: Role | None = None
    password: str | None = Field(
        default=None,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return _checked_email(v)

    @field_validator("password", mode="before")
    @classmethod
    def blank_password_means_unchanged(cls, v: object) -> object:
        if v == "":
            return None
        return v


class UsersListResponse(BaseModel):
    """Response for GET /api/admin/users (admin only)."""

    count: int
    data: list[UserOut]
