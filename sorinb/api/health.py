"""Liveness and database health checks."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from sorinb.api.deps import get_app_settings
from sorinb.core.config import Settings
from sorinb.core.database import check_db_connected, get_db
from sorinb.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Process liveness only; does not touch the database."""
    return HealthResponse(ok=True, environment=settings.APP_ENV)


@router.get("/db", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
def get_health_db(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse | JSONResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring; 503 when the database is unreachable.
    """
    if check_db_connected(db):
        return HealthResponse(ok=True, environment=settings.APP_ENV, database="connected")
    body = HealthResponse(ok=False, environment=settings.APP_ENV, database="disconnected")
    return JSONResponse(status_code=503, content=body.model_dump())
