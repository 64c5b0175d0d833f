"""
SQLAlchemy models for the greenlight schema.

Exposes `Base`, `now_utc`, and all ORM classes from one import point.
"""

from .base import Base, now_utc  # re-export

from .movies import Movie
from .users import User
from .tokens import Token
from .permissions import Permission, users_permissions

__all__ = [
    # base
    "Base",
    "now_utc",
    # domain
    "Movie",
    "User",
    "Token",
    "Permission",
    "users_permissions",
]
