"""
Shared helpers for repository operations.

Every store operation runs inside ``deadline``: on PostgreSQL a
transaction-local ``statement_timeout`` bounds each statement, and a
cancelled statement or an exhausted pool surfaces as StoreTimeout.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from greenlight.db.database import query_timeout
from greenlight.errors import StoreTimeout

logger = logging.getLogger(__name__)

# SQLSTATE raised by PostgreSQL when statement_timeout cancels a query
QUERY_CANCELED = "57014"


def dialect_name(db: Session) -> str:
    bind = db.get_bind()
    return getattr(getattr(bind, "dialect", None), "name", "")


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, PoolTimeoutError):
        return True
    return isinstance(exc, DBAPIError) and _sqlstate(exc) == QUERY_CANCELED


def violated_constraint(exc: IntegrityError) -> str:
    """Best-effort name of the constraint behind an IntegrityError."""
    diag = getattr(getattr(exc, "orig", None), "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name
    return str(getattr(exc, "orig", exc))


@contextmanager
def deadline(
    db: Session,
    operation: str,
    timeout: Optional[float] = None,
    *,
    release: bool = False,
) -> Iterator[None]:
    """Bound ``operation`` by ``timeout`` seconds (default DB_QUERY_TIMEOUT).

    With ``release`` the transaction is committed on success, so reads do not
    leave it open; anything the caller needs from ORM rows must be copied out
    inside the block.
    """
    seconds = query_timeout() if timeout is None else timeout
    try:
        if dialect_name(db) == "postgresql":
            db.execute(
                text("SELECT set_config('statement_timeout', :ms, true)"),
                {"ms": str(int(seconds * 1000))},
            )
        yield
        if release:
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        if is_timeout(exc):
            logger.warning("%s timed out after %ss", operation, seconds)
            raise StoreTimeout(operation, seconds) from exc
        raise
