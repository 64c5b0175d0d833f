"""Create movies, users, tokens and permissions tables

Revision ID: 3c1f0a7d2b10
Revises:
Create Date: 2025-06-06 23:14:38.664727

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1f0a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'movies',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('runtime', sa.Integer(), nullable=False),
        sa.Column('genres', postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('runtime >= 0', name='movies_runtime_check'),
        sa.CheckConstraint("year BETWEEN 1888 AND date_part('year', now())", name='movies_year_check'),
        sa.CheckConstraint('array_length(genres, 1) BETWEEN 1 AND 5', name='genres_length_check'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('activated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.UniqueConstraint('email', name='users_email_key'),
    )

    op.create_table(
        'tokens',
        sa.Column('hash', sa.LargeBinary(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expiry', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scope', sa.Text(), nullable=False),
    )
    op.create_index('idx_tokens_user_scope', 'tokens', ['user_id', 'scope'])

    op.create_table(
        'permissions',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('code', sa.Text(), nullable=False, unique=True),
    )
    op.create_table(
        'users_permissions',
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_id', sa.BigInteger(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('users_permissions')
    op.drop_table('permissions')
    op.drop_index('idx_tokens_user_scope', table_name='tokens')
    op.drop_table('tokens')
    op.drop_table('users')
    op.drop_table('movies')
