"""Admin data view: public tables and the users table."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sorinb.api.deps import require_admin
from sorinb.core.database import get_db
from sorinb.schemas.auth import CurrentUser, UserOut
from sorinb.schemas.data import DataResponse, TableName
from sorinb.services.data import list_tables
from sorinb.services.users import list_users

router = APIRouter()


@router.get("", response_model=DataResponse)
def get_data(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse:
    """Return the table names and every user row (admin only, no password hashes)."""
    return DataResponse(
        tables=[TableName(table_name=name) for name in list_tables(db)],
        data=[UserOut.model_validate(u) for u in list_users(db)],
    )
