from sqlalchemy import Column, Text, Integer, DateTime, CheckConstraint
from .base import Base, now_utc
from greenlight.db.types import IdentityKey, GenreList


class Movie(Base):
    __tablename__ = 'movies'
    id = Column(IdentityKey, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    title = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    runtime = Column(Integer, nullable=False)
    genres = Column(GenreList, nullable=False)
    # Optimistic concurrency counter; bumped by every successful update
    version = Column(Integer, nullable=False, default=1, server_default='1')

    __table_args__ = (
        CheckConstraint('runtime >= 0', name='movies_runtime_check'),
        CheckConstraint('year >= 1888', name='movies_year_check'),
    )
