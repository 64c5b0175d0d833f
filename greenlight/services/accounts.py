"""
Account service: registration, activation and authentication tokens.

Mail delivery is not handled here; the activation token plaintext is
returned to the caller, which hands it to the mailer.
"""

import logging
from datetime import timedelta
from typing import Tuple

from sqlalchemy.orm import Session

from greenlight.db import schemas
from greenlight.db.repositories import permissions as permission_repo
from greenlight.db.repositories import tokens as token_repo
from greenlight.db.repositories import users as user_repo
from greenlight.errors import DuplicateKey, InvalidCredentials, RecordNotFound, ValidationFailed
from greenlight.utils import token_crypto
from greenlight.utils.permissions import DEFAULT_PERMISSIONS
from greenlight.utils.scopes import SCOPE_ACTIVATION, SCOPE_AUTHENTICATION
from greenlight.utils.validation import validate_input

logger = logging.getLogger(__name__)

ACTIVATION_TOKEN_TTL = timedelta(days=3)
AUTHENTICATION_TOKEN_TTL = timedelta(hours=24)


class AccountService:
    """Service class for user account workflows."""

    def __init__(self, db: Session):
        self.db = db

    def register_user(self, name: str, email: str, password: str) -> Tuple[schemas.User, schemas.Token]:
        """Create an inactive account and issue its activation token."""
        payload = validate_input(schemas.UserCreate, {"name": name, "email": email, "password": password})
        draft = schemas.UserDraft(
            name=payload.name,
            email=payload.email,
            password=token_crypto.hash_password(payload.candidate_credential()),
            activated=False,
        )
        try:
            user = user_repo.insert_user(self.db, draft)
        except DuplicateKey as exc:
            raise ValidationFailed({"email": "a user with this email address already exists"}) from exc

        permission_repo.grant_permissions(self.db, user.id, *DEFAULT_PERMISSIONS)
        token = token_repo.new_token(self.db, user.id, ACTIVATION_TOKEN_TTL, SCOPE_ACTIVATION)
        logger.info("registered user %s", user.id)
        return user, token

    def activate_user(self, token_plaintext: str) -> schemas.User:
        validate_input(schemas.TokenPlaintext, {"token": token_plaintext})
        try:
            user = user_repo.get_user_for_token(self.db, token_plaintext, SCOPE_ACTIVATION)
        except RecordNotFound as exc:
            raise ValidationFailed({"token": "invalid or expired activation token"}) from exc

        user = user_repo.update_user(self.db, user.model_copy(update={"activated": True}))
        token_repo.delete_all_tokens_for_user(self.db, user.id, SCOPE_ACTIVATION)
        logger.info("activated user %s", user.id)
        return user

    def create_authentication_token(self, email: str, password: str) -> schemas.Token:
        """Exchange email and password for a 24-hour authentication token."""
        credentials = validate_input(schemas.Credentials, {"email": email, "password": password})
        try:
            user = user_repo.get_user_by_email(self.db, credentials.email)
        except RecordNotFound as exc:
            raise InvalidCredentials() from exc

        if not token_crypto.password_matches(user.password, credentials.password):
            raise InvalidCredentials()

        return token_repo.new_token(self.db, user.id, AUTHENTICATION_TOKEN_TTL, SCOPE_AUTHENTICATION)

    def logout(self, user_id: int) -> None:
        token_repo.delete_all_tokens_for_user(self.db, user_id, SCOPE_AUTHENTICATION)
