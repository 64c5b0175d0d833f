from sqlalchemy import Column, Text, Boolean, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from greenlight.db.types import IdentityKey


class User(Base):
    __tablename__ = 'users'
    id = Column(IdentityKey, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    # Argon2id hash; the plaintext password is never stored
    password_hash = Column(Text, nullable=False)
    activated = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=1, server_default='1')

    tokens = relationship("Token", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    permissions = relationship("Permission", secondary="users_permissions", back_populates="users")

    __table_args__ = (
        UniqueConstraint('email', name='users_email_key'),
    )
