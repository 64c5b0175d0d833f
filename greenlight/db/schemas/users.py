from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from greenlight.utils.token_crypto import CandidateCredential, StoredCredential
from greenlight.utils.validation import is_valid_email

MAX_NAME_BYTES = 500
MIN_PASSWORD_BYTES = 8
MAX_PASSWORD_BYTES = 72


def _check_email(v: str) -> str:
    if not v.strip():
        raise ValueError("must be provided")
    if not is_valid_email(v):
        raise ValueError("must be a valid email address")
    return v


def _check_password(v: str) -> str:
    size = len(v.encode("utf-8"))
    if not v.strip():
        raise ValueError("must be provided")
    if size < MIN_PASSWORD_BYTES:
        raise ValueError("must be at least 8 bytes long")
    if size > MAX_PASSWORD_BYTES:
        raise ValueError("must not be more than 72 bytes long")
    return v


class UserBase(BaseModel):
    name: str
    email: str

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("must be provided")
        if len(v.encode("utf-8")) > MAX_NAME_BYTES:
            raise ValueError("must not be more than 500 bytes long")
        return v

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _check_email(v)


class UserCreate(UserBase):
    """Registration input; carries the plaintext password for validation only."""

    password: str = Field(exclude=True, repr=False)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        return _check_password(v)

    def candidate_credential(self) -> CandidateCredential:
        return CandidateCredential(plaintext=self.password)


class Credentials(BaseModel):
    email: str
    password: str = Field(exclude=True, repr=False)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        return _check_password(v)


class UserDraft(UserBase):
    """A user ready to be persisted: the password is already hashed."""

    password: Optional[StoredCredential] = Field(default=None, exclude=True, repr=False)
    activated: bool = False


class User(UserDraft):
    id: int
    created_at: datetime
    version: int = Field(exclude=True)
    model_config = ConfigDict(from_attributes=True)
