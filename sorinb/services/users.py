"""User account operations shared by the auth routes, admin routes and CLI."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sorinb.core.security import hash_password, normalize_email, verify_password
from sorinb.models import User

if TYPE_CHECKING:
    from sorinb.core.config import Settings

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base class for user operation failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmailTakenError(UserServiceError):
    """Raised when an email is already registered to another account."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email '{email}' is already registered.")
        self.email = email


class UserNotFoundError(UserServiceError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found.")
        self.user_id = user_id


def get_by_email(session: Session, email: str) -> User | None:
    return session.query(User).filter(User.email == normalize_email(email)).first()


def get_by_id(session: Session, user_id: int) -> User | None:
    return session.get(User, user_id)


def create_user(session: Session, email: str, password: str, role: str = "user") -> User:
    """
    Insert a new user and commit. Raises EmailTakenError on a duplicate email.

    The unique index still guards against a concurrent insert of the same
    address; that IntegrityError is translated to EmailTakenError too.
    """
    email = normalize_email(email)
    if get_by_email(session, email) is not None:
        raise EmailTakenError(email)
    user = User(email=email, password_hash=hash_password(password), role=role)
    session.add(user)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise EmailTakenError(email) from e
    session.refresh(user)
    logger.info("Created user id=%s role=%s", user.id, user.role)
    return user


def authenticate(session: Session, email: str, password: str) -> User | None:
    """Return the user when the password matches, else None."""
    user = get_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def list_users(session: Session) -> list[User]:
    return session.query(User).order_by(User.id).all()


def update_user(
    session: Session,
    user_id: int,
    email: str | None = None,
    role: str | None = None,
    password: str | None = None,
) -> User:
    """Apply an admin edit. Fields left as None are unchanged."""
    user = get_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    if email is not None:
        email = normalize_email(email)
        if email != user.email:
            other = get_by_email(session, email)
            if other is not None and other.id != user.id:
                raise EmailTakenError(email)
            user.email = email
    if role is not None:
        user.role = role
    if password:
        user.password_hash = hash_password(password)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise EmailTakenError(email or user.email) from e
    session.refresh(user)
    logger.info(
        "Updated user id=%s role=%s password_reset=%s", user.id, user.role, bool(password)
    )
    return user


def delete_user(session: Session, user_id: int) -> None:
    user = get_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    session.delete(user)
    session.commit()
    logger.info("Deleted user id=%s", user_id)


def bootstrap_admin(session: Session, settings: "Settings") -> User | None:
    """
    Create the admin from ADMIN_EMAIL / ADMIN_PASSWORD if that email is unknown.

    Runs at every startup but only ever inserts once; an existing account
    (whatever its role or password) is left alone. Returns the created user.
    """
    if not settings.ADMIN_EMAIL or settings.ADMIN_PASSWORD is None:
        return None
    password = settings.ADMIN_PASSWORD.get_secret_value()
    if not password:
        return None
    if get_by_email(session, settings.ADMIN_EMAIL) is not None:
        logger.debug("Admin bootstrap skipped: %s already exists", settings.ADMIN_EMAIL)
        return None
    try:
        user = create_user(session, settings.ADMIN_EMAIL, password, role="admin")
    except EmailTakenError:
        # Another worker won the race.
        return None
    logger.info("Bootstrapped admin account %s", user.email)
    return user
