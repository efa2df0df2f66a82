"""
Handlers for events emitted by the mUSD collateralized debt token.
"""

from enum import StrEnum

from musd_indexer.database.models import MusdPositionTable, UserTable
from musd_indexer.events import decode_address, decode_uint_values
from musd_indexer.libraries import (
    adjust_active_users,
    calculate_health_factor,
    is_user_active,
    saturating_subtract,
)
from musd_indexer.logging import logger
from musd_indexer.processors.context import EventHandlerContext
from musd_indexer.processors.protocol import update_protocol_timestamps


class MusdPositionEventType(StrEnum):
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"
    LIQUIDATION = "LIQUIDATION"


def _update_health_factor(context: EventHandlerContext, user: UserTable) -> None:
    user.health_factor = calculate_health_factor(
        collateral=user.collateral_balance,
        debt=user.debt_balance,
        collateral_price=context.stats.collateral_price_usd,
    )


def _record_position_snapshot(
    context: EventHandlerContext,
    user: UserTable,
    delta_collateral: int,
    delta_debt: int,
    event_type: MusdPositionEventType,
) -> None:
    context.store.save(
        MusdPositionTable(
            id=context.record_id,
            user_id=user.id,
            collateral_amount=user.collateral_balance,
            debt_amount=user.debt_balance,
            delta_collateral=delta_collateral,
            delta_debt=delta_debt,
            event_type=event_type.value,
            health_factor=user.health_factor,
            last_updated_block=context.block_number,
            last_updated_timestamp=context.block_timestamp,
        )
    )


def process_collateral_asset_updated_event(context: EventHandlerContext) -> None:
    """
    Process a CollateralAssetUpdated event.

    EVENT DEFINITION
    # event CollateralAssetUpdated(
    #     address indexed asset
    # );
    """

    asset = decode_address(context.event["topics"][1])
    context.stats.collateral_asset = asset
    logger.info(f"Collateral asset set to {asset} at block {context.block_number}")

    update_protocol_timestamps(context)


def process_mint_percentage_updated_event(context: EventHandlerContext) -> None:
    """
    Process a MintPercentageUpdated event.

    EVENT DEFINITION
    # event MintPercentageUpdated(
    #     uint256 bps
    # );
    """

    (bps,) = decode_uint_values(event=context.event, num_values=1)
    context.stats.mint_percentage_bps = bps
    logger.info(f"Mint percentage set to {bps} bps at block {context.block_number}")

    update_protocol_timestamps(context)


def process_collateral_price_updated_event(context: EventHandlerContext) -> None:
    """
    Process a CollateralPriceUpdated event.

    Stored user health factors are not recalculated. The new price applies from the next position
    change.

    EVENT DEFINITION
    # event CollateralPriceUpdated(
    #     uint256 price
    # );
    """

    (price,) = decode_uint_values(event=context.event, num_values=1)
    context.stats.collateral_price_usd = price

    update_protocol_timestamps(context)


def process_min_health_factor_updated_event(context: EventHandlerContext) -> None:
    """
    Process a MinHealthFactorUpdated event.

    EVENT DEFINITION
    # event MinHealthFactorUpdated(
    #     uint256 newFactor
    # );
    """

    (new_factor,) = decode_uint_values(event=context.event, num_values=1)
    context.stats.min_health_factor = new_factor
    logger.info(f"Minimum health factor set to {new_factor} at block {context.block_number}")

    update_protocol_timestamps(context)


def process_collateral_locked_event(context: EventHandlerContext) -> None:
    """
    Process a CollateralLocked event.

    EVENT DEFINITION
    # event CollateralLocked(
    #     address indexed account,
    #     uint256 collateralAmount,
    #     uint256 mintedAmount
    # );
    """

    account = decode_address(context.event["topics"][1])
    collateral_amount, minted_amount = decode_uint_values(event=context.event, num_values=2)

    stats = context.stats
    user = context.store.get_or_create_user(account)
    was_active = is_user_active(user.collateral_balance, user.debt_balance)

    user.collateral_balance += collateral_amount
    user.debt_balance += minted_amount
    user.musd_balance += minted_amount
    _update_health_factor(context, user)
    context.store.save(user)

    stats.total_collateral += collateral_amount
    stats.total_debt += minted_amount
    stats.total_supply += minted_amount
    stats.active_users = adjust_active_users(
        stats.active_users,
        was_active=was_active,
        is_active=is_user_active(user.collateral_balance, user.debt_balance),
    )

    _record_position_snapshot(
        context,
        user,
        delta_collateral=collateral_amount,
        delta_debt=minted_amount,
        event_type=MusdPositionEventType.LOCK,
    )

    update_protocol_timestamps(context)


def process_collateral_unlocked_event(context: EventHandlerContext) -> None:
    """
    Process a CollateralUnlocked event.

    EVENT DEFINITION
    # event CollateralUnlocked(
    #     address indexed account,
    #     uint256 collateralAmount,
    #     uint256 burnedAmount
    # );
    """

    account = decode_address(context.event["topics"][1])
    collateral_amount, burned_amount = decode_uint_values(event=context.event, num_values=2)

    stats = context.stats
    user = context.store.get_or_create_user(account)
    was_active = is_user_active(user.collateral_balance, user.debt_balance)

    user.collateral_balance = saturating_subtract(user.collateral_balance, collateral_amount)
    user.debt_balance = saturating_subtract(user.debt_balance, burned_amount)
    user.musd_balance = saturating_subtract(user.musd_balance, burned_amount)
    _update_health_factor(context, user)
    context.store.save(user)

    stats.total_collateral = saturating_subtract(stats.total_collateral, collateral_amount)
    stats.total_debt = saturating_subtract(stats.total_debt, burned_amount)
    stats.total_supply = saturating_subtract(stats.total_supply, burned_amount)
    stats.active_users = adjust_active_users(
        stats.active_users,
        was_active=was_active,
        is_active=is_user_active(user.collateral_balance, user.debt_balance),
    )

    _record_position_snapshot(
        context,
        user,
        delta_collateral=-collateral_amount,
        delta_debt=-burned_amount,
        event_type=MusdPositionEventType.UNLOCK,
    )

    update_protocol_timestamps(context)


def process_position_liquidated_event(context: EventHandlerContext) -> None:
    """
    Process a PositionLiquidated event.

    The burned debt is repaid by the liquidator, so the user's mUSD balance is unchanged.

    EVENT DEFINITION
    # event PositionLiquidated(
    #     address indexed account,
    #     uint256 collateralSeized,
    #     uint256 debtBurned
    # );
    """

    account = decode_address(context.event["topics"][1])
    collateral_seized, debt_burned = decode_uint_values(event=context.event, num_values=2)

    stats = context.stats
    user = context.store.get_or_create_user(account)
    was_active = is_user_active(user.collateral_balance, user.debt_balance)

    user.collateral_balance = saturating_subtract(user.collateral_balance, collateral_seized)
    user.debt_balance = saturating_subtract(user.debt_balance, debt_burned)
    _update_health_factor(context, user)
    context.store.save(user)

    stats.total_collateral = saturating_subtract(stats.total_collateral, collateral_seized)
    stats.total_debt = saturating_subtract(stats.total_debt, debt_burned)
    stats.total_supply = saturating_subtract(stats.total_supply, debt_burned)
    stats.active_users = adjust_active_users(
        stats.active_users,
        was_active=was_active,
        is_active=is_user_active(user.collateral_balance, user.debt_balance),
    )

    _record_position_snapshot(
        context,
        user,
        delta_collateral=-collateral_seized,
        delta_debt=-debt_burned,
        event_type=MusdPositionEventType.LIQUIDATION,
    )

    logger.info(
        f"Position for {account} liquidated at block {context.block_number}: "
        f"{collateral_seized} collateral seized, {debt_burned} debt burned"
    )

    update_protocol_timestamps(context)
