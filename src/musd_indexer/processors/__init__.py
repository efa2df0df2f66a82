from collections.abc import Callable

from hexbytes import HexBytes

from musd_indexer.events import MusdEvent, RwaPoolEvent, RwaPoolFactoryEvent, SuperStakeEvent
from musd_indexer.exceptions import UnknownEvent

from . import musd, pools, protocol, superstake
from .context import EventHandlerContext
from .protocol import update_protocol_timestamps

EVENT_HANDLERS: dict[HexBytes, Callable[[EventHandlerContext], None]] = {
    MusdEvent.COLLATERAL_ASSET_UPDATED.value: musd.process_collateral_asset_updated_event,
    MusdEvent.MINT_PERCENTAGE_UPDATED.value: musd.process_mint_percentage_updated_event,
    MusdEvent.COLLATERAL_PRICE_UPDATED.value: musd.process_collateral_price_updated_event,
    MusdEvent.MIN_HEALTH_FACTOR_UPDATED.value: musd.process_min_health_factor_updated_event,
    MusdEvent.COLLATERAL_LOCKED.value: musd.process_collateral_locked_event,
    MusdEvent.COLLATERAL_UNLOCKED.value: musd.process_collateral_unlocked_event,
    MusdEvent.POSITION_LIQUIDATED.value: musd.process_position_liquidated_event,
    RwaPoolFactoryEvent.POOL_CREATED.value: pools.process_pool_created_event,
    RwaPoolEvent.LIQUIDITY_ADDED.value: pools.process_liquidity_added_event,
    RwaPoolEvent.LIQUIDITY_REMOVED.value: pools.process_liquidity_removed_event,
    RwaPoolEvent.SWAP.value: pools.process_swap_event,
    SuperStakeEvent.TOKENS_CONFIGURED.value: superstake.process_tokens_configured_event,
    SuperStakeEvent.SWAPPER_UPDATED.value: superstake.process_swapper_updated_event,
    SuperStakeEvent.MAX_LOOPS_UPDATED.value: superstake.process_max_loops_updated_event,
    SuperStakeEvent.POSITION_OPENED.value: superstake.process_position_opened_event,
    SuperStakeEvent.POSITION_CLOSED.value: superstake.process_position_closed_event,
}


def dispatch_event(context: EventHandlerContext) -> None:
    """
    Dispatch event to appropriate handler based on event topic.
    """

    topic = HexBytes(context.event["topics"][0])
    if topic not in EVENT_HANDLERS:
        raise UnknownEvent(topic=topic)

    handler = EVENT_HANDLERS[topic]
    handler(context)


__all__ = (
    "EVENT_HANDLERS",
    "EventHandlerContext",
    "dispatch_event",
    "musd",
    "pools",
    "protocol",
    "superstake",
    "update_protocol_timestamps",
)
