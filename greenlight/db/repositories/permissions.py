"""
Permission repository functions.

Permissions are rows in ``permissions`` joined to users through
``users_permissions``; reads come back as a PermissionSet.
"""
from __future__ import annotations

from typing import Iterable, NoReturn

from sqlalchemy import insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from greenlight.db import models
from greenlight.db.store_utils import deadline, violated_constraint
from greenlight.errors import DuplicateKey
from greenlight.utils.permissions import PermissionSet

GRANT_CONSTRAINT = "users_permissions_pkey"


def get_permissions_for_user(db: Session, user_id: int) -> PermissionSet:
    with deadline(db, "get permissions for user", release=True):
        codes = (
            db.query(models.Permission.code)
            .join(
                models.users_permissions,
                models.users_permissions.c.permission_id == models.Permission.id,
            )
            .filter(models.users_permissions.c.user_id == user_id)
            .order_by(models.Permission.id.asc())
            .all()
        )
    return PermissionSet(code for (code,) in codes)


def _duplicate_grant_or_raise(exc: IntegrityError) -> NoReturn:
    constraint = violated_constraint(exc)
    # PostgreSQL names the primary key, SQLite reports a UNIQUE failure on the table
    if GRANT_CONSTRAINT in constraint or "UNIQUE constraint failed: users_permissions" in constraint:
        raise DuplicateKey("users_permissions", GRANT_CONSTRAINT) from exc
    raise exc


def grant_permissions(db: Session, user_id: int, *codes: str) -> None:
    """Grant every known code in ``codes`` to ``user_id``; unknown codes are ignored."""
    if not codes:
        return
    stmt = insert(models.users_permissions).from_select(
        ["user_id", "permission_id"],
        select(literal(user_id), models.Permission.id).where(models.Permission.code.in_(codes)),
    )
    with deadline(db, "grant permissions"):
        try:
            db.execute(stmt)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            _duplicate_grant_or_raise(exc)


def ensure_permission_codes(db: Session, codes: Iterable[str]) -> None:
    """Insert any of ``codes`` that do not exist yet."""
    wanted = list(dict.fromkeys(codes))
    with deadline(db, "ensure permission codes"):
        existing = {
            code
            for (code,) in db.query(models.Permission.code)
            .filter(models.Permission.code.in_(wanted))
            .all()
        }
        for code in wanted:
            if code not in existing:
                db.add(models.Permission(code=code))
        db.commit()
