from . import balance_math, health_factor, liquidity_math
from .balance_math import adjust_active_users, is_user_active, saturating_subtract
from .health_factor import calculate_health_factor, to_percentage
from .liquidity_math import PoolShare, calculate_pool_share

__all__ = (
    "PoolShare",
    "adjust_active_users",
    "balance_math",
    "calculate_health_factor",
    "calculate_pool_share",
    "health_factor",
    "is_user_active",
    "liquidity_math",
    "saturating_subtract",
    "to_percentage",
)
