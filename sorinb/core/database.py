"""PostgreSQL connection pool and session management.

The pool is owned by a ``Database`` handle built when the application starts
and disposed when it stops; request handlers receive sessions from the handle
stored on ``app.state`` instead of a module-level engine.
"""

import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sorinb.core.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """Engine plus session factory with an explicit lifetime."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        engine = create_engine(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            echo=settings.DEBUG,
        )
        return cls(engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        """Close every pooled connection. Safe to call more than once."""
        self.engine.dispose()
        logger.info("Database pool disposed")


def get_database(request: Request) -> Database:
    """Return the handle created by the application lifespan."""
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.warning("Database connectivity check failed", exc_info=True)
        return False
