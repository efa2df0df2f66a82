from sqlalchemy.orm import Mapped

from .base import Address, Base, BigInteger
from .types import PrimaryKeyStr


class ProtocolStatsTable(Base):
    """
    Protocol-wide totals and configuration snapshots. A single row keyed by "global" exists.

    `active_users` is maintained incrementally on each user's active/inactive transition and is
    never recomputed by scanning the users table.
    """

    __tablename__ = "protocol_stats"

    id: Mapped[PrimaryKeyStr]

    total_supply: Mapped[BigInteger]
    total_debt: Mapped[BigInteger]
    total_collateral: Mapped[BigInteger]
    active_users: Mapped[int]
    total_pools: Mapped[int]
    total_volume: Mapped[BigInteger]
    total_swaps: Mapped[BigInteger]

    # mUSD configuration
    collateral_asset: Mapped[Address | None]
    mint_percentage_bps: Mapped[BigInteger]
    collateral_price_usd: Mapped[BigInteger]
    min_health_factor: Mapped[BigInteger]

    # SuperStake configuration
    superstake_musd: Mapped[Address | None]
    superstake_meth: Mapped[Address | None]
    superstake_swapper: Mapped[Address | None]
    superstake_max_loops: Mapped[BigInteger]

    updated_at_block: Mapped[int]
    updated_at_timestamp: Mapped[int]
