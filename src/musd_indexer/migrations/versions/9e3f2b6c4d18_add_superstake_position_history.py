"""Add SuperStake position history

Revision ID: 9e3f2b6c4d18
Revises: 5a1c0e9d7b42
Create Date: 2026-07-21 16:40:03.982117

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

import musd_indexer.database.models

# revision identifiers, used by Alembic.
revision: str = "9e3f2b6c4d18"
down_revision: str | Sequence[str] | None = "5a1c0e9d7b42"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "superstake_position_history",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column(
            "collateral_amount",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "debt_amount",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "delta_collateral",
            musd_indexer.database.models.base.SignedIntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "delta_debt",
            musd_indexer.database.models.base.SignedIntMappedToString(),
            nullable=False,
        ),
        sa.Column("event_type", sa.Text(), nullable=False),
        sa.Column("loops", sa.Integer(), nullable=False),
        sa.Column("block_number", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("superstake_position_history", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_superstake_position_history_user_id"), ["user_id"], unique=False
        )
        batch_op.create_index(
            "ix_superstake_position_history_user_block",
            ["user_id", "block_number"],
            unique=False,
        )


def downgrade() -> None:
    """Downgrade schema."""

    with op.batch_alter_table("superstake_position_history", schema=None) as batch_op:
        batch_op.drop_index("ix_superstake_position_history_user_block")
        batch_op.drop_index(batch_op.f("ix_superstake_position_history_user_id"))

    op.drop_table("superstake_position_history")
