from typing import NamedTuple


class PoolShare(NamedTuple):
    amount_musd: int
    amount_rwa: int


def calculate_pool_share(
    liquidity_provided: int,
    reserve_musd: int,
    reserve_rwa: int,
    total_liquidity: int,
) -> PoolShare:
    """
    Calculate a liquidity provider's proportional claim on the pool reserves.

    Division truncates toward zero to match the pool contract's rounding.
    """

    if total_liquidity == 0 or liquidity_provided == 0:
        return PoolShare(amount_musd=0, amount_rwa=0)

    return PoolShare(
        amount_musd=reserve_musd * liquidity_provided // total_liquidity,
        amount_rwa=reserve_rwa * liquidity_provided // total_liquidity,
    )
