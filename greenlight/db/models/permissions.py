from sqlalchemy import Column, Text, ForeignKey, Table
from sqlalchemy.orm import relationship
from .base import Base
from greenlight.db.types import IdentityKey


users_permissions = Table(
    'users_permissions',
    Base.metadata,
    Column('user_id', IdentityKey, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    Column('permission_id', IdentityKey, ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True),
)


class Permission(Base):
    __tablename__ = 'permissions'
    id = Column(IdentityKey, primary_key=True, autoincrement=True)
    code = Column(Text, nullable=False, unique=True)

    users = relationship("User", secondary=users_permissions, back_populates="permissions")
