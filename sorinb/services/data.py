"""Admin data view and the guarded raw-query runner."""

import logging
import re
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# First keyword of an accepted statement.
ALLOWED_STATEMENTS = frozenset({"SELECT", "WITH", "EXPLAIN", "SHOW", "VALUES"})

# Keywords that write, change schema or move data out, rejected anywhere in the text.
FORBIDDEN_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "MERGE",
    "INTO",
    "COPY",
    "CREATE",
    "DROP",
    "ALTER",
    "TRUNCATE",
    "GRANT",
    "REVOKE",
    "CALL",
    "DO",
    "VACUUM",
    "LOCK",
)

_FIRST_WORD = re.compile(r"^\s*([A-Za-z]+)\b")
_FORBIDDEN = re.compile(r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b", re.IGNORECASE)


class RawQueryRejected(Exception):
    """Raised when a statement falls outside the read-only allow-list."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def list_tables(session: Session) -> list[str]:
    """Table names in the default schema ('public' on PostgreSQL)."""
    return sorted(inspect(session.get_bind()).get_table_names())


def check_read_only(query: str) -> str:
    """Return the statement without its trailing ';' or raise RawQueryRejected."""
    statement = query.strip()
    if statement.endswith(";"):
        statement = statement[:-1].rstrip()
    if not statement:
        raise RawQueryRejected("Query is empty.")
    if ";" in statement:
        raise RawQueryRejected("Only a single statement is allowed.")
    if "--" in statement or "/*" in statement:
        raise RawQueryRejected("SQL comments are not allowed.")
    match = _FIRST_WORD.match(statement)
    keyword = match.group(1).upper() if match else ""
    if keyword not in ALLOWED_STATEMENTS:
        allowed = ", ".join(sorted(ALLOWED_STATEMENTS))
        raise RawQueryRejected(
            f"Statement '{keyword or statement[:20]}' is not allowed; use one of {allowed}."
        )
    forbidden = _FORBIDDEN.search(statement)
    if forbidden:
        raise RawQueryRejected(f"Keyword '{forbidden.group(1).upper()}' is not allowed.")
    return statement


def run_read_only(
    session: Session,
    query: str,
    params: dict[str, Any],
    max_rows: int,
) -> list[dict[str, Any]]:
    """
    Execute one allow-listed statement and return at most max_rows rows.

    The transaction is always rolled back; on PostgreSQL it is also opened
    READ ONLY so functions with side effects fail inside the database.
    """
    statement = check_read_only(query)
    try:
        if session.get_bind().dialect.name == "postgresql":
            session.execute(text("SET TRANSACTION READ ONLY"))
        result = session.execute(text(statement), params)
        if not result.returns_rows:
            return []
        rows = [dict(row._mapping) for row in result.fetchmany(max_rows)]
    finally:
        session.rollback()
    logger.info("Raw query returned %s rows", len(rows))
    return rows
