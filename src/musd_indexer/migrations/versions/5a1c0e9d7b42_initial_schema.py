"""Initial schema

Revision ID: 5a1c0e9d7b42
Revises:
Create Date: 2026-06-02 09:14:51.310442

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

import musd_indexer.database.models

# revision identifiers, used by Alembic.
revision: str = "5a1c0e9d7b42"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "protocol_stats",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column(
            "total_supply",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "total_debt",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "total_collateral",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column("active_users", sa.Integer(), nullable=False),
        sa.Column("total_pools", sa.Integer(), nullable=False),
        sa.Column(
            "total_volume",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "total_swaps",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column("collateral_asset", sa.String(length=42), nullable=True),
        sa.Column("mint_percentage_bps", sa.Integer(), nullable=False),
        sa.Column(
            "collateral_price_usd",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "min_health_factor",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column("superstake_musd", sa.String(length=42), nullable=True),
        sa.Column("superstake_meth", sa.String(length=42), nullable=True),
        sa.Column("superstake_swapper", sa.String(length=42), nullable=True),
        sa.Column("superstake_max_loops", sa.Integer(), nullable=False),
        sa.Column("updated_at_block", sa.Integer(), nullable=False),
        sa.Column("updated_at_timestamp", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "users",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column(
            "musd_balance",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "debt_balance",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "collateral_balance",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "health_factor",
            musd_indexer.database.models.base.DecimalMappedToString(),
            nullable=False,
        ),
        sa.Column("superstake_position_id", sa.String(length=42), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "musd_positions",
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
        sa.Column(
            "health_factor",
            musd_indexer.database.models.base.DecimalMappedToString(),
            nullable=False,
        ),
        sa.Column("last_updated_block", sa.Integer(), nullable=False),
        sa.Column("last_updated_timestamp", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("musd_positions", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_musd_positions_user_id"), ["user_id"], unique=False)
        batch_op.create_index(
            "ix_musd_positions_user_block",
            ["user_id", "last_updated_block"],
            unique=False,
        )

    op.create_table(
        "rwa_pools",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("musd_token", sa.String(length=42), nullable=False),
        sa.Column("rwa_token", sa.String(length=42), nullable=False),
        sa.Column("asset_symbol", sa.Text(), nullable=False),
        sa.Column("verifier", sa.String(length=42), nullable=False),
        sa.Column("policy_id", sa.Text(), nullable=False),
        sa.Column(
            "reserve_musd",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "reserve_rwa",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "total_liquidity",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "total_volume",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "total_swaps",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column("created_at_block", sa.Integer(), nullable=False),
        sa.Column("created_at_timestamp", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "liquidity_positions",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("pool_id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column(
            "liquidity_provided",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "amount_musd",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "amount_rwa",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column("block_number", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["rwa_pools.id"],
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("liquidity_positions", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_liquidity_positions_pool_id"), ["pool_id"], unique=False
        )
        batch_op.create_index(
            batch_op.f("ix_liquidity_positions_user_id"), ["user_id"], unique=False
        )

    op.create_table(
        "rwa_swaps",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("pool_id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("token_in", sa.String(length=42), nullable=False),
        sa.Column("token_out", sa.String(length=42), nullable=False),
        sa.Column(
            "amount_in",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "amount_out",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column("tx_hash", sa.Text(), nullable=False),
        sa.Column("block_number", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["rwa_pools.id"],
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("rwa_swaps", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_rwa_swaps_pool_id"), ["pool_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_rwa_swaps_user_id"), ["user_id"], unique=False)
        batch_op.create_index(
            "ix_rwa_swaps_pool_block",
            ["pool_id", "block_number"],
            unique=False,
        )

    op.create_table(
        "superstake_positions",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column(
            "collateral_locked",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column(
            "total_debt_minted",
            musd_indexer.database.models.base.IntMappedToString(),
            nullable=False,
        ),
        sa.Column("loops", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("opened_at_block", sa.Integer(), nullable=True),
        sa.Column("opened_at_timestamp", sa.Integer(), nullable=True),
        sa.Column("updated_at_block", sa.Integer(), nullable=False),
        sa.Column("updated_at_timestamp", sa.Integer(), nullable=False),
        sa.Column("closed_at_block", sa.Integer(), nullable=True),
        sa.Column("closed_at_timestamp", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("superstake_positions", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_superstake_positions_user_id"), ["user_id"], unique=False
        )

    op.create_table(
        "data_sources",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("template", sa.Text(), nullable=False),
        sa.Column("created_at_block", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "indexer_checkpoints",
        sa.Column("chain_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("last_update_block", sa.Integer(), nullable=True),
        sa.Column("last_block_number", sa.Integer(), nullable=True),
        sa.Column("last_log_index", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("chain_id"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    msg = "Downgrade is not supported for this migration."
    raise NotImplementedError(msg)
