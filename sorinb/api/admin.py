"""Admin user management: list, edit (email, role, password reset), delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sorinb.api.deps import require_admin
from sorinb.core.database import get_db
from sorinb.schemas.auth import (
    CurrentUser,
    MeResponse,
    OkResponse,
    UserOut,
    UsersListResponse,
    UserUpdateRequest,
)
from sorinb.services import users as user_service

router = APIRouter()


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users ordered by id."""
    users = user_service.list_users(db)
    return UsersListResponse(count=len(users), data=[UserOut.model_validate(u) for u in users])


@router.put("/users/{user_id}", response_model=MeResponse)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MeResponse:
    """Change email and/or role; a non-empty password resets it."""
    try:
        user = user_service.update_user(
            db, user_id, email=body.email, role=body.role, password=body.password
        )
    except user_service.UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except user_service.EmailTakenError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    return MeResponse(user=UserOut.model_validate(user))


@router.delete("/users/{user_id}", response_model=OkResponse)
def delete_user(
    user_id: int,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> OkResponse:
    """Delete a user. Their location readings stay, with user_id set to NULL."""
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account.",
        )
    try:
        user_service.delete_user(db, user_id)
    except user_service.UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    return OkResponse(ok=True)
