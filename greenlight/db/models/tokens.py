from sqlalchemy import Column, Text, DateTime, ForeignKey, LargeBinary, Index
from sqlalchemy.orm import relationship
from .base import Base
from greenlight.db.types import IdentityKey


class Token(Base):
    __tablename__ = 'tokens'

    # SHA-256 digest of the plaintext token (never store the plaintext)
    hash = Column(LargeBinary, primary_key=True)
    user_id = Column(IdentityKey, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    expiry = Column(DateTime(timezone=True), nullable=False)
    scope = Column(Text, nullable=False)

    user = relationship("User", back_populates="tokens")

    __table_args__ = (
        Index('idx_tokens_user_scope', 'user_id', 'scope'),
    )
