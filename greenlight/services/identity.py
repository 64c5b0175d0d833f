"""
Request identity resolution and authorization checks.

An identity is either ``Authenticated(user)`` or the ``ANONYMOUS`` variant;
callers branch on the variant, never on user field values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.orm import Session

from greenlight.db import schemas
from greenlight.db.repositories import permissions as permission_repo
from greenlight.db.repositories import users as user_repo
from greenlight.errors import (
    AuthenticationRequired,
    InactiveAccount,
    InvalidCredentials,
    PermissionDenied,
    RecordNotFound,
    ValidationFailed,
)
from greenlight.utils.scopes import SCOPE_AUTHENTICATION
from greenlight.utils.validation import validate_input

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Anonymous:
    is_anonymous = True


@dataclass(frozen=True)
class Authenticated:
    user: schemas.User
    is_anonymous = False


Identity = Union[Authenticated, Anonymous]

ANONYMOUS = Anonymous()


def resolve_identity(db: Session, authorization: Optional[str]) -> Identity:
    """Resolve an ``Authorization`` header value to an identity.

    No header means anonymous. A header that is present but malformed, or
    whose token is unknown, expired or of another scope, is rejected.
    """
    if not authorization:
        return ANONYMOUS

    if not authorization.startswith(BEARER_PREFIX):
        raise InvalidCredentials("invalid or missing authentication token")
    token = authorization[len(BEARER_PREFIX):].strip()

    try:
        validate_input(schemas.TokenPlaintext, {"token": token})
    except ValidationFailed as exc:
        raise InvalidCredentials("invalid or missing authentication token") from exc

    try:
        user = user_repo.get_user_for_token(db, token, SCOPE_AUTHENTICATION)
    except RecordNotFound as exc:
        raise InvalidCredentials("invalid or missing authentication token") from exc
    return Authenticated(user=user)


def require_authenticated(identity: Identity) -> schemas.User:
    if isinstance(identity, Authenticated):
        return identity.user
    raise AuthenticationRequired()


def require_activated(identity: Identity) -> schemas.User:
    user = require_authenticated(identity)
    if not user.activated:
        raise InactiveAccount()
    return user


def require_permission(db: Session, identity: Identity, code: str) -> schemas.User:
    """Return the activated user behind ``identity`` if they hold ``code``."""
    user = require_activated(identity)
    permissions = permission_repo.get_permissions_for_user(db, user.id)
    if not permissions.includes(code):
        logger.info("permission %s denied for user %s", code, user.id)
        raise PermissionDenied(code)
    return user
