"""
User repository functions.

Users follow the same optimistic-concurrency contract as movies. A unique
email violation is reported as DuplicateKey; persisting a user without a
password hash is a ContractViolation.
"""
from __future__ import annotations

from datetime import datetime
from typing import NoReturn, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from greenlight.db import models, schemas
from greenlight.db.store_utils import deadline, violated_constraint
from greenlight.errors import ContractViolation, DuplicateKey, EditConflict, RecordNotFound
from greenlight.utils import token_crypto

EMAIL_CONSTRAINT = "users_email_key"


def _to_schema(row: models.User) -> schemas.User:
    return schemas.User(
        id=row.id,
        created_at=row.created_at,
        name=row.name,
        email=row.email,
        password=token_crypto.StoredCredential(hash=row.password_hash),
        activated=row.activated,
        version=row.version,
    )


def _require_password_hash(user: schemas.UserDraft) -> str:
    if user.password is None or not user.password.hash:
        raise ContractViolation("missing password hash for user")
    return user.password.hash


def _duplicate_or_raise(exc: IntegrityError) -> NoReturn:
    constraint = violated_constraint(exc)
    # PostgreSQL reports the constraint name, SQLite the column ("users.email")
    if EMAIL_CONSTRAINT in constraint or "users.email" in constraint:
        raise DuplicateKey("users", EMAIL_CONSTRAINT) from exc
    raise exc


def insert_user(db: Session, user: schemas.UserDraft) -> schemas.User:
    password_hash = _require_password_hash(user)
    with deadline(db, "insert user"):
        db_user = models.User(
            name=user.name,
            email=user.email,
            password_hash=password_hash,
            activated=user.activated,
            version=1,
        )
        db.add(db_user)
        try:
            db.flush()
        except IntegrityError as exc:
            db.rollback()
            _duplicate_or_raise(exc)
        db.refresh(db_user)
        created = _to_schema(db_user)
        db.commit()
    return created


def get_user(db: Session, user_id: int) -> schemas.User:
    if user_id < 1:
        raise RecordNotFound("users", user_id)
    with deadline(db, "get user", release=True):
        row = db.query(models.User).filter(models.User.id == user_id).first()
        user = _to_schema(row) if row is not None else None
    if user is None:
        raise RecordNotFound("users", user_id)
    return user


def get_user_by_email(db: Session, email: str) -> schemas.User:
    with deadline(db, "get user by email", release=True):
        row = db.query(models.User).filter(models.User.email == email).first()
        user = _to_schema(row) if row is not None else None
    if user is None:
        raise RecordNotFound("users", email)
    return user


def get_user_for_token(
    db: Session,
    token_plaintext: str,
    scope: str,
    *,
    now: Optional[datetime] = None,
) -> schemas.User:
    """Return the owner of an unexpired token of ``scope``.

    The lookup is by digest and scope together, never by plaintext and never
    by a scope-less digest.
    """
    token_hash = token_crypto.hash_token(token_plaintext)
    now = now or models.now_utc()
    with deadline(db, "get user for token", release=True):
        row = (
            db.query(models.User)
            .join(models.Token, models.Token.user_id == models.User.id)
            .filter(
                models.Token.hash == token_hash,
                models.Token.scope == scope,
                models.Token.expiry > now,
            )
            .first()
        )
        user = _to_schema(row) if row is not None else None
    if user is None:
        raise RecordNotFound("tokens", scope)
    return user


def update_user(db: Session, user: schemas.User) -> schemas.User:
    password_hash = _require_password_hash(user)
    stmt = (
        update(models.User)
        .where(models.User.id == user.id, models.User.version == user.version)
        .values(
            name=user.name,
            email=user.email,
            password_hash=password_hash,
            activated=user.activated,
            version=models.User.version + 1,
        )
        .returning(models.User.version)
        .execution_options(synchronize_session=False)
    )
    with deadline(db, "update user"):
        try:
            new_version = db.execute(stmt).scalar_one_or_none()
        except IntegrityError as exc:
            db.rollback()
            _duplicate_or_raise(exc)
        if new_version is None:
            db.rollback()
            raise EditConflict("users", user.id, user.version)
        db.commit()
    return user.model_copy(update={"version": new_version})
