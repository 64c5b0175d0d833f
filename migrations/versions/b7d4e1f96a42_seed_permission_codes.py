"""Seed permission codes

Revision ID: b7d4e1f96a42
Revises: 8e52c4b9d031
Create Date: 2025-06-12 16:40:03.518207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b7d4e1f96a42'
down_revision: Union[str, None] = '8e52c4b9d031'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PERMISSION_CODES = ('movies:read', 'movies:write')


def upgrade() -> None:
    """Upgrade schema."""
    conn = op.get_bind()
    for code in PERMISSION_CODES:
        conn.execute(
            sa.text("INSERT INTO permissions (code) VALUES (:code) ON CONFLICT (code) DO NOTHING"),
            {"code": code},
        )


def downgrade() -> None:
    """Downgrade schema."""
    conn = op.get_bind()
    conn.execute(
        sa.text("DELETE FROM permissions WHERE code IN :codes").bindparams(sa.bindparam("codes", expanding=True)),
        {"codes": list(PERMISSION_CODES)},
    )
