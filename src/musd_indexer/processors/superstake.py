"""
Handlers for events emitted by the SuperStake leveraged staking vault.
"""

from enum import StrEnum

import eth_abi.abi

from musd_indexer.database.models import SuperStakePositionHistoryTable, SuperStakePositionTable
from musd_indexer.events import decode_address, decode_uint_values
from musd_indexer.functions import get_lowercase_address
from musd_indexer.libraries import saturating_subtract
from musd_indexer.logging import logger
from musd_indexer.processors.context import EventHandlerContext
from musd_indexer.processors.protocol import update_protocol_timestamps


class SuperStakeEventType(StrEnum):
    OPEN = "OPEN"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    CLOSE = "CLOSE"


def _record_history(
    context: EventHandlerContext,
    position: SuperStakePositionTable,
    delta_collateral: int,
    delta_debt: int,
    event_type: SuperStakeEventType,
) -> None:
    context.store.save(
        SuperStakePositionHistoryTable(
            id=context.record_id,
            user_id=position.user_id,
            collateral_amount=position.collateral_locked,
            debt_amount=position.total_debt_minted,
            delta_collateral=delta_collateral,
            delta_debt=delta_debt,
            event_type=event_type.value,
            loops=position.loops,
            block_number=context.block_number,
            timestamp=context.block_timestamp,
        )
    )


def process_tokens_configured_event(context: EventHandlerContext) -> None:
    """
    Process a TokensConfigured event.

    EVENT DEFINITION
    # event TokensConfigured(
    #     address mUsd,
    #     address mEth
    # );
    """

    musd, meth = eth_abi.abi.decode(types=["address", "address"], data=context.event["data"])
    context.stats.superstake_musd = get_lowercase_address(musd)
    context.stats.superstake_meth = get_lowercase_address(meth)
    logger.info(
        f"SuperStake tokens configured at block {context.block_number}: "
        f"mUSD {context.stats.superstake_musd}, mETH {context.stats.superstake_meth}"
    )

    update_protocol_timestamps(context)


def process_swapper_updated_event(context: EventHandlerContext) -> None:
    """
    Process a SwapperUpdated event.

    EVENT DEFINITION
    # event SwapperUpdated(
    #     address swapper
    # );
    """

    (swapper,) = eth_abi.abi.decode(types=["address"], data=context.event["data"])
    context.stats.superstake_swapper = get_lowercase_address(swapper)
    logger.info(
        f"SuperStake swapper set to {context.stats.superstake_swapper} "
        f"at block {context.block_number}"
    )

    update_protocol_timestamps(context)


def process_max_loops_updated_event(context: EventHandlerContext) -> None:
    """
    Process a MaxLoopsUpdated event.

    EVENT DEFINITION
    # event MaxLoopsUpdated(
    #     uint256 maxLoops
    # );
    """

    (max_loops,) = decode_uint_values(event=context.event, num_values=1)
    context.stats.superstake_max_loops = max_loops

    update_protocol_timestamps(context)


def process_position_opened_event(context: EventHandlerContext) -> None:
    """
    Process a PositionOpened event. The first open stamps the position's open block and timestamp,
    later opens are recorded as deposits.

    EVENT DEFINITION
    # event PositionOpened(
    #     address indexed user,
    #     uint256 collateralLocked,
    #     uint256 totalDebtMinted,
    #     uint256 loopsExecuted
    # );
    """

    user_address = decode_address(context.event["topics"][1])
    collateral_locked, total_debt_minted, loops_executed = decode_uint_values(
        event=context.event, num_values=3
    )

    user = context.store.get_or_create_user(user_address)
    position = context.store.get_or_create_superstake_position(user_address)

    if position.opened_at_block is None or (
        context.options.reset_open_on_reopen and position.closed_at_block is not None
    ):
        event_type = SuperStakeEventType.OPEN
        position.opened_at_block = context.block_number
        position.opened_at_timestamp = context.block_timestamp
    else:
        event_type = SuperStakeEventType.DEPOSIT

    position.collateral_locked += collateral_locked
    position.total_debt_minted += total_debt_minted
    position.loops = loops_executed
    position.active = True
    position.updated_at_block = context.block_number
    position.updated_at_timestamp = context.block_timestamp
    position.closed_at_block = None
    position.closed_at_timestamp = None
    context.store.save(position)

    user.superstake_position_id = position.id
    context.store.save(user)

    _record_history(
        context,
        position,
        delta_collateral=collateral_locked,
        delta_debt=total_debt_minted,
        event_type=event_type,
    )

    if event_type is SuperStakeEventType.OPEN:
        logger.info(
            f"SuperStake position opened for {user_address} at block {context.block_number}"
        )

    update_protocol_timestamps(context)


def process_position_closed_event(context: EventHandlerContext) -> None:
    """
    Process a PositionClosed event. The position becomes inactive once no collateral remains
    locked, otherwise the event is recorded as a withdrawal.

    EVENT DEFINITION
    # event PositionClosed(
    #     address indexed user,
    #     uint256 collateralReleased,
    #     uint256 debtBurned
    # );
    """

    user_address = decode_address(context.event["topics"][1])
    collateral_released, debt_burned = decode_uint_values(event=context.event, num_values=2)

    context.store.get_or_create_user(user_address)
    position = context.store.get_or_create_superstake_position(user_address)

    position.collateral_locked = saturating_subtract(
        position.collateral_locked, collateral_released
    )
    position.total_debt_minted = saturating_subtract(position.total_debt_minted, debt_burned)
    position.updated_at_block = context.block_number
    position.updated_at_timestamp = context.block_timestamp

    if position.collateral_locked == 0:
        event_type = SuperStakeEventType.CLOSE
        position.active = False
        position.closed_at_block = context.block_number
        position.closed_at_timestamp = context.block_timestamp
        logger.info(
            f"SuperStake position closed for {user_address} at block {context.block_number}"
        )
    else:
        event_type = SuperStakeEventType.WITHDRAW

    context.store.save(position)

    _record_history(
        context,
        position,
        delta_collateral=-collateral_released,
        delta_debt=-debt_burned,
        event_type=event_type,
    )

    update_protocol_timestamps(context)
