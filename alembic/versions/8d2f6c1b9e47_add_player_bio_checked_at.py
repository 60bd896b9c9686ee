"""Add players.bio_checked_at

Revision ID: 8d2f6c1b9e47
Revises: 3a9e41c07b52
Create Date: 2026-10-18

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8d2f6c1b9e47"
down_revision: Union[str, Sequence[str], None] = "3a9e41c07b52"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    with op.batch_alter_table("players") as batch:
        batch.add_column(sa.Column("bio_checked_at", sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""

    with op.batch_alter_table("players") as batch:
        batch.drop_column("bio_checked_at")
