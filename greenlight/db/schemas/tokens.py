from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from greenlight.utils.token_crypto import TOKEN_LENGTH


class Token(BaseModel):
    """A freshly issued token.

    ``plaintext`` is only known at issuance; the store keeps ``hash``.
    """

    plaintext: str = Field(serialization_alias="token", repr=False)
    expiry: datetime
    hash: bytes = Field(exclude=True, repr=False)
    user_id: int = Field(exclude=True)
    scope: str = Field(exclude=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TokenPlaintext(BaseModel):
    token: str = Field(repr=False)

    @field_validator("token")
    @classmethod
    def _validate_token(cls, v: str) -> str:
        if not v:
            raise ValueError("must be provided")
        if len(v) != TOKEN_LENGTH:
            raise ValueError(f"must be {TOKEN_LENGTH} bytes long")
        return v
