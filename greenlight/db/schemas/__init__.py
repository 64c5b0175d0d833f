"""
Pydantic schemas for records crossing the store boundary.

Repositories return these detached projections instead of live ORM objects.
"""

from .movies import MovieBase, MovieCreate, MovieUpdate, Movie
from .users import UserBase, UserCreate, Credentials, UserDraft, User
from .tokens import Token, TokenPlaintext

__all__ = [
    "MovieBase",
    "MovieCreate",
    "MovieUpdate",
    "Movie",
    "UserBase",
    "UserCreate",
    "Credentials",
    "UserDraft",
    "User",
    "Token",
    "TokenPlaintext",
]
