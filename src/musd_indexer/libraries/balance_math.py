"""
Balance arithmetic shared by every event handler.

Recorded balances can lag the authoritative on-chain state (a missed top-up, a fee path that does
not emit an event). Decrements therefore saturate at zero instead of raising. The policy is
applied to every decrement, never selectively.
"""


def saturating_subtract(value: int, amount: int) -> int:
    """
    Subtract `amount` from `value`, clamping the result at zero.
    """

    return value - amount if value > amount else 0


def is_user_active(collateral: int, debt: int) -> bool:
    """
    A user is active while holding any collateral or any debt.
    """

    return collateral > 0 or debt > 0


def adjust_active_users(active_users: int, *, was_active: bool, is_active: bool) -> int:
    """
    Return the active user count after a single user's transition. The count moves only when the
    user flips between active and inactive, and never drops below zero.
    """

    if not was_active and is_active:
        return active_users + 1
    if was_active and not is_active and active_users > 0:
        return active_users - 1
    return active_users
