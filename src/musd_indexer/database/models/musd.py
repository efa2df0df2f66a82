from decimal import Decimal

from sqlalchemy import Index
from sqlalchemy.orm import Mapped

from .base import Address, Base, BigInteger, SignedBigInteger
from .types import ForeignKeyUserId, PrimaryKeyStr


class UserTable(Base):
    __tablename__ = "users"

    # lowercase hex address
    id: Mapped[PrimaryKeyStr]

    musd_balance: Mapped[BigInteger]
    debt_balance: Mapped[BigInteger]
    collateral_balance: Mapped[BigInteger]
    health_factor: Mapped[Decimal]
    superstake_position_id: Mapped[Address | None]


class MusdPositionTable(Base):
    """
    An immutable snapshot of a user's mUSD position after a lock, unlock or liquidation event.
    """

    __tablename__ = "musd_positions"

    # {transaction hash}-{log index}
    id: Mapped[PrimaryKeyStr]
    user_id: Mapped[ForeignKeyUserId]

    collateral_amount: Mapped[BigInteger]
    debt_amount: Mapped[BigInteger]
    delta_collateral: Mapped[SignedBigInteger]
    delta_debt: Mapped[SignedBigInteger]
    event_type: Mapped[str]
    health_factor: Mapped[Decimal]
    last_updated_block: Mapped[int]
    last_updated_timestamp: Mapped[int]


Index(
    "ix_musd_positions_user_block",
    MusdPositionTable.user_id,
    MusdPositionTable.last_updated_block,
)
