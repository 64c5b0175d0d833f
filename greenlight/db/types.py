"""Custom SQLAlchemy types used by the persistence layer."""
from __future__ import annotations

from sqlalchemy import BigInteger, Integer, Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.types import JSON

# Auto-incrementing surrogate key: BIGSERIAL on PostgreSQL. SQLite only
# auto-increments a column declared exactly as INTEGER PRIMARY KEY.
IdentityKey = BigInteger().with_variant(Integer(), "sqlite")

# Movie genres: native text[] on PostgreSQL so that array containment (@>)
# and GIN indexing are available. Other dialects (SQLite during unit tests)
# store the list as JSON; comparisons keep the ARRAY comparator.
GenreList = postgresql.ARRAY(Text).with_variant(JSON(), "sqlite")
