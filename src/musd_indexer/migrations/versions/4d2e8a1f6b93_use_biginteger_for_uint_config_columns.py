"""Use BigInteger for loop counts and mint percentage

Revision ID: 4d2e8a1f6b93
Revises: 9e3f2b6c4d18
Create Date: 2026-10-18 10:22:47.118903

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

import musd_indexer.database.models

# revision identifiers, used by Alembic.
revision: str = "4d2e8a1f6b93"
down_revision: str | Sequence[str] | None = "9e3f2b6c4d18"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    with op.batch_alter_table("protocol_stats", schema=None) as batch_op:
        for column in ("mint_percentage_bps", "superstake_max_loops"):
            batch_op.alter_column(
                column,
                existing_type=sa.INTEGER(),
                type_=musd_indexer.database.models.base.IntMappedToString(),
                existing_nullable=False,
            )

    for table in ("superstake_positions", "superstake_position_history"):
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.alter_column(
                "loops",
                existing_type=sa.INTEGER(),
                type_=musd_indexer.database.models.base.IntMappedToString(),
                existing_nullable=False,
            )


def downgrade() -> None:
    """Downgrade schema."""
    msg = "Downgrade is not supported for this migration."
    raise NotImplementedError(msg)
