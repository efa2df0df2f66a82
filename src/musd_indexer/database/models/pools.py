from sqlalchemy import Index
from sqlalchemy.orm import Mapped, relationship

from .base import Address, Base, BigInteger
from .types import ForeignKeyPoolId, ForeignKeyUserId, PrimaryKeyStr


class RwaPoolTable(Base):
    __tablename__ = "rwa_pools"

    # lowercase hex address of the pool contract
    id: Mapped[PrimaryKeyStr]

    musd_token: Mapped[Address]
    rwa_token: Mapped[Address]
    asset_symbol: Mapped[str]
    verifier: Mapped[Address]
    # 0x-prefixed hex of the compliance policy image ID
    policy_id: Mapped[str]

    reserve_musd: Mapped[BigInteger]
    reserve_rwa: Mapped[BigInteger]
    total_liquidity: Mapped[BigInteger]
    total_volume: Mapped[BigInteger]
    total_swaps: Mapped[BigInteger]

    created_at_block: Mapped[int]
    created_at_timestamp: Mapped[int]

    # Relationships
    liquidity_positions: Mapped[list["LiquidityPositionTable"]] = relationship(
        "LiquidityPositionTable",
        back_populates="pool",
    )


class LiquidityPositionTable(Base):
    __tablename__ = "liquidity_positions"

    # {pool address}-{user address}
    id: Mapped[PrimaryKeyStr]
    pool_id: Mapped[ForeignKeyPoolId]
    user_id: Mapped[ForeignKeyUserId]

    liquidity_provided: Mapped[BigInteger]
    amount_musd: Mapped[BigInteger]
    amount_rwa: Mapped[BigInteger]

    block_number: Mapped[int]
    timestamp: Mapped[int]

    # Relationships
    pool: Mapped["RwaPoolTable"] = relationship(
        "RwaPoolTable",
        back_populates="liquidity_positions",
    )


class RwaSwapTable(Base):
    """
    An immutable record of a swap against an RWA pool.
    """

    __tablename__ = "rwa_swaps"

    # {transaction hash}-{log index}
    id: Mapped[PrimaryKeyStr]
    pool_id: Mapped[ForeignKeyPoolId]
    user_id: Mapped[ForeignKeyUserId]

    token_in: Mapped[Address]
    token_out: Mapped[Address]
    amount_in: Mapped[BigInteger]
    amount_out: Mapped[BigInteger]
    tx_hash: Mapped[str]

    block_number: Mapped[int]
    timestamp: Mapped[int]


Index(
    "ix_rwa_swaps_pool_block",
    RwaSwapTable.pool_id,
    RwaSwapTable.block_number,
)
