"""
Credential hashing and token generation utilities.

Responsibilities:
- Hash account passwords with Argon2id and verify them in constant time
- Generate opaque bearer tokens: 16 random bytes, unpadded base-32 plaintext
- Derive the SHA-256 digest that is the only token form ever persisted
"""
from __future__ import annotations

import base64
import hashlib
import math
import secrets
from dataclasses import dataclass, field
from typing import Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from greenlight.errors import MalformedHash

_argon2 = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32)

TOKEN_BYTES = 16
# Unpadded base-32: one character per 5 bits of input
TOKEN_LENGTH = math.ceil(TOKEN_BYTES * 8 / 5)


@dataclass(frozen=True)
class CandidateCredential:
    """A plaintext password that has not been hashed yet.

    Only lives for the duration of validation and hashing.
    """

    plaintext: str = field(repr=False)


@dataclass(frozen=True)
class StoredCredential:
    """The one-way hash of a password; the only form handed to the store."""

    hash: str = field(repr=False)


def hash_password(candidate: CandidateCredential) -> StoredCredential:
    return StoredCredential(hash=_argon2.hash(candidate.plaintext))


def password_matches(stored: StoredCredential, plaintext: str) -> bool:
    """Return True if ``plaintext`` matches the stored hash.

    A mismatch is an ordinary ``False``; a hash that cannot be parsed raises
    ``MalformedHash`` so callers can tell a wrong password from corrupt data.
    """
    try:
        return _argon2.verify(stored.hash, plaintext)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as exc:
        raise MalformedHash("stored password hash is malformed") from exc


def generate_token_plaintext() -> str:
    """Return a fresh high-entropy token string of exactly TOKEN_LENGTH chars."""
    raw = secrets.token_bytes(TOKEN_BYTES)
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def hash_token(plaintext: str) -> bytes:
    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def generate_token() -> Tuple[str, bytes]:
    """Generate a new token and return (plaintext, hash)."""
    plaintext = generate_token_plaintext()
    return plaintext, hash_token(plaintext)
