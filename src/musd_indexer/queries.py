"""
Read-only lookups over the derived entities.

Addresses may be given in any case, they are normalized before the lookup.
"""

from collections.abc import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from musd_indexer.constants import GLOBAL_STATS_ID
from musd_indexer.database.models import (
    LiquidityPositionTable,
    MusdPositionTable,
    ProtocolStatsTable,
    RwaPoolTable,
    RwaSwapTable,
    SuperStakePositionHistoryTable,
    SuperStakePositionTable,
    UserTable,
)
from musd_indexer.functions import get_lowercase_address


def get_user(session: Session, address: str) -> UserTable | None:
    return session.get(UserTable, get_lowercase_address(address))


def get_protocol_stats(session: Session) -> ProtocolStatsTable | None:
    return session.get(ProtocolStatsTable, GLOBAL_STATS_ID)


def get_pool(session: Session, address: str) -> RwaPoolTable | None:
    return session.get(RwaPoolTable, get_lowercase_address(address))


def get_pools(session: Session) -> Sequence[RwaPoolTable]:
    return session.scalars(
        select(RwaPoolTable).order_by(RwaPoolTable.created_at_block, RwaPoolTable.id)
    ).all()


def get_liquidity_position(
    session: Session,
    pool: str,
    user: str,
) -> LiquidityPositionTable | None:
    return session.get(
        LiquidityPositionTable,
        f"{get_lowercase_address(pool)}-{get_lowercase_address(user)}",
    )


def get_user_liquidity_positions(session: Session, user: str) -> Sequence[LiquidityPositionTable]:
    return session.scalars(
        select(LiquidityPositionTable)
        .where(LiquidityPositionTable.user_id == get_lowercase_address(user))
        .order_by(LiquidityPositionTable.pool_id)
    ).all()


def get_superstake_position(session: Session, user: str) -> SuperStakePositionTable | None:
    return session.get(SuperStakePositionTable, get_lowercase_address(user))


def get_musd_position_history(
    session: Session,
    user: str,
    limit: int | None = None,
) -> Sequence[MusdPositionTable]:
    """
    Get the position snapshots for a user, most recent first.
    """

    return session.scalars(
        select(MusdPositionTable)
        .where(MusdPositionTable.user_id == get_lowercase_address(user))
        .order_by(
            MusdPositionTable.last_updated_block.desc(),
            MusdPositionTable.last_updated_timestamp.desc(),
            MusdPositionTable.id.desc(),
        )
        .limit(limit)
    ).all()


def get_superstake_history(
    session: Session,
    user: str,
    limit: int | None = None,
) -> Sequence[SuperStakePositionHistoryTable]:
    """
    Get the leveraged staking history for a user, most recent first.
    """

    return session.scalars(
        select(SuperStakePositionHistoryTable)
        .where(SuperStakePositionHistoryTable.user_id == get_lowercase_address(user))
        .order_by(
            SuperStakePositionHistoryTable.block_number.desc(),
            SuperStakePositionHistoryTable.timestamp.desc(),
            SuperStakePositionHistoryTable.id.desc(),
        )
        .limit(limit)
    ).all()


def get_pool_swaps(
    session: Session,
    pool: str,
    limit: int | None = None,
) -> Sequence[RwaSwapTable]:
    """
    Get the swaps against a pool, most recent first.
    """

    return session.scalars(
        select(RwaSwapTable)
        .where(RwaSwapTable.pool_id == get_lowercase_address(pool))
        .order_by(
            RwaSwapTable.block_number.desc(),
            RwaSwapTable.timestamp.desc(),
            RwaSwapTable.id.desc(),
        )
        .limit(limit)
    ).all()


def count_active_users(session: Session) -> int:
    """
    Count users holding collateral or debt by scanning the users table. The stored
    `active_users` counter must always equal this value.
    """

    count = session.scalar(
        select(func.count())
        .select_from(UserTable)
        .where(
            or_(
                UserTable.collateral_balance != 0,
                UserTable.debt_balance != 0,
            )
        )
    )
    return 0 if count is None else count
