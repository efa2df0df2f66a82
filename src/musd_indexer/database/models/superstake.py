from sqlalchemy import Index
from sqlalchemy.orm import Mapped

from .base import Base, BigInteger, SignedBigInteger
from .types import ForeignKeyUserId, PrimaryKeyStr


class SuperStakePositionTable(Base):
    """
    A user's leveraged staking position.

    `opened_at_block` is None until the first open event. The close fields are None until the
    position is fully closed, and are cleared again when it is re-opened.
    """

    __tablename__ = "superstake_positions"

    # lowercase hex address of the user
    id: Mapped[PrimaryKeyStr]
    user_id: Mapped[ForeignKeyUserId]

    collateral_locked: Mapped[BigInteger]
    total_debt_minted: Mapped[BigInteger]
    loops: Mapped[BigInteger]
    active: Mapped[bool]

    opened_at_block: Mapped[int | None]
    opened_at_timestamp: Mapped[int | None]
    updated_at_block: Mapped[int]
    updated_at_timestamp: Mapped[int]
    closed_at_block: Mapped[int | None]
    closed_at_timestamp: Mapped[int | None]


class SuperStakePositionHistoryTable(Base):
    """
    An immutable record of a change to a leveraged staking position.
    """

    __tablename__ = "superstake_position_history"

    # {transaction hash}-{log index}
    id: Mapped[PrimaryKeyStr]
    user_id: Mapped[ForeignKeyUserId]

    collateral_amount: Mapped[BigInteger]
    debt_amount: Mapped[BigInteger]
    delta_collateral: Mapped[SignedBigInteger]
    delta_debt: Mapped[SignedBigInteger]
    event_type: Mapped[str]
    loops: Mapped[BigInteger]

    block_number: Mapped[int]
    timestamp: Mapped[int]


Index(
    "ix_superstake_position_history_user_block",
    SuperStakePositionHistoryTable.user_id,
    SuperStakePositionHistoryTable.block_number,
)
