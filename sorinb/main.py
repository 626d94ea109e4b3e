"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sorinb.api import router
from sorinb.core.config import Settings, get_settings
from sorinb.core.database import Database
from sorinb.core.errors import setup_exception_handlers
from sorinb.core.logging_config import configure_logging
from sorinb.services.users import bootstrap_admin

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the application.

    When no database handle is injected, one is created from settings at
    startup and disposed at shutdown. An injected handle belongs to the caller.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = database is None
        db_handle = Database.from_settings(settings) if owned else database
        app.state.database = db_handle
        session = db_handle.session()
        try:
            bootstrap_admin(session, settings)
        finally:
            session.close()
        logger.info("SorinB API started (env=%s)", settings.APP_ENV)
        try:
            yield
        finally:
            if owned:
                db_handle.dispose()
            logger.info("SorinB API stopped")

    app = FastAPI(
        title="SorinB API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)
    app.include_router(router)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "SorinB API"}

    return app


def main() -> None:
    """Run with uvicorn (equivalently: uvicorn --factory sorinb.main:create_app)."""
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
