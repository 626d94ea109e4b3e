"""Schemas for the admin data view and the raw query endpoint."""

from pydantic import BaseModel, Field, field_validator

from sorinb.schemas.auth import UserOut

Scalar = str | int | float | bool | None


class TableName(BaseModel):
    table_name: str


class DataResponse(BaseModel):
    """Response for GET /api/data: public tables plus every user row."""

    tables: list[TableName]
    data: list[UserOut]


class QueryRequest(BaseModel):
    """A single read-only SQL statement with named bound parameters (:name)."""

    query: str = Field(..., min_length=1, max_length=10_000)
    params: dict[str, Scalar] = Field(default_factory=dict)

    @field_validator("query")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v
