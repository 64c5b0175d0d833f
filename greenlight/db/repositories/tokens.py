"""
Token repository functions.

Only the SHA-256 digest of a token is persisted; the plaintext is returned
to the caller once, from ``new_token``.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from greenlight.db import models, schemas
from greenlight.db.store_utils import deadline
from greenlight.errors import ContractViolation
from greenlight.utils import token_crypto
from greenlight.utils.scopes import is_valid_scope


def new_token(db: Session, user_id: int, ttl: timedelta, scope: str) -> schemas.Token:
    """Generate a token for ``user_id`` in ``scope`` and persist its digest."""
    if not is_valid_scope(scope):
        raise ContractViolation(f"unknown token scope {scope!r}")
    plaintext, token_hash = token_crypto.generate_token()
    token = schemas.Token(
        plaintext=plaintext,
        hash=token_hash,
        user_id=user_id,
        expiry=models.now_utc() + ttl,
        scope=scope,
    )
    insert_token(db, token)
    return token


def insert_token(db: Session, token: schemas.Token) -> None:
    with deadline(db, "insert token"):
        db.add(
            models.Token(
                hash=token.hash,
                user_id=token.user_id,
                expiry=token.expiry,
                scope=token.scope,
            )
        )
        db.commit()


def delete_all_tokens_for_user(db: Session, user_id: int, scope: str) -> None:
    """Invalidate every token of ``scope`` owned by ``user_id``; idempotent."""
    with deadline(db, "delete tokens for user"):
        db.execute(
            delete(models.Token)
            .where(models.Token.user_id == user_id, models.Token.scope == scope)
            .execution_options(synchronize_session=False)
        )
        db.commit()


def delete_expired_tokens(db: Session, *, now: Optional[datetime] = None) -> int:
    now = now or models.now_utc()
    with deadline(db, "delete expired tokens"):
        result = db.execute(
            delete(models.Token)
            .where(models.Token.expiry <= now)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    return result.rowcount or 0
