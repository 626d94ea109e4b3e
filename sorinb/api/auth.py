"""Register, login, logout and session lookup. Tokens go in the body and an HTTP-only cookie."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from sorinb.api.deps import get_app_settings, get_current_user, unauthorized
from sorinb.core.config import Settings
from sorinb.core.database import get_db
from sorinb.core.security import create_access_token
from sorinb.models import User
from sorinb.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MeResponse,
    OkResponse,
    RegisterRequest,
    UserOut,
)
from sorinb.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.token_max_age_seconds,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.AUTH_COOKIE_SAMESITE,
    )


def _issue(user: User, response: Response, settings: Settings) -> AuthResponse:
    token = create_access_token(sub=user.id, email=user.email, role=user.role, settings=settings)
    _set_auth_cookie(response, token, settings)
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthResponse:
    """Create a 'user' account and sign it in."""
    try:
        user = user_service.create_user(db, body.email, body.password, role="user")
    except user_service.EmailTakenError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered.",
        )
    return _issue(user, response, settings)


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns the user and a JWT.
    Send the token back as `Authorization: Bearer <token>` or rely on the cookie.
    """
    user = user_service.authenticate(db, body.email, body.password)
    if user is None:
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )
    return _issue(user, response, settings)


@router.post("/logout", response_model=OkResponse)
def logout(
    response: Response,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> OkResponse:
    """Clear the auth cookie. Issued tokens stay valid until they expire."""
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.AUTH_COOKIE_SAMESITE,
    )
    return OkResponse(ok=True)


@router.get("/me", response_model=MeResponse)
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MeResponse:
    """Return the signed-in user; 401 when the token is missing or the account is gone."""
    user = user_service.get_by_id(db, current_user.id)
    if user is None:
        raise unauthorized("User not found")
    return MeResponse(user=UserOut.model_validate(user))
