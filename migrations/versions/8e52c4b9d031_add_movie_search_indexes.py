"""Add full-text and genre GIN indexes on movies

Revision ID: 8e52c4b9d031
Revises: 3c1f0a7d2b10
Create Date: 2025-06-08 10:02:11.120938

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '8e52c4b9d031'
down_revision: Union[str, None] = '3c1f0a7d2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("CREATE INDEX IF NOT EXISTS movies_title_idx ON movies USING GIN (to_tsvector('simple', title))")
    op.execute("CREATE INDEX IF NOT EXISTS movies_genres_idx ON movies USING GIN (genres)")


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS movies_genres_idx")
    op.execute("DROP INDEX IF EXISTS movies_title_idx")
