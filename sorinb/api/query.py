"""Raw SQL endpoint, reduced to admin-only, read-only, allow-listed statements."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sorinb.api.deps import get_app_settings, require_admin
from sorinb.core.config import Settings
from sorinb.core.database import get_db
from sorinb.schemas.auth import CurrentUser
from sorinb.schemas.data import QueryRequest
from sorinb.services.data import RawQueryRejected, run_read_only

logger = logging.getLogger(__name__)

router = APIRouter()


def require_raw_query_enabled(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Settings:
    if not settings.RAW_QUERY_ENABLED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return settings


@router.post("")
def run_query(
    body: QueryRequest,
    settings: Annotated[Settings, Depends(require_raw_query_enabled)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> list[dict[str, Any]]:
    """
    Run one read-only statement and return its rows as JSON objects.

    Bind values through `params` and reference them as `:name` in the query.
    Disabled unless RAW_QUERY_ENABLED is set.
    """
    logger.info("Raw query by admin id=%s", admin.id)
    try:
        return run_read_only(db, body.query, body.params, settings.RAW_QUERY_MAX_ROWS)
    except RawQueryRejected as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
