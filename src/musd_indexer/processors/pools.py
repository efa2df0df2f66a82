"""
Handlers for events emitted by the RWA pool factory and by the pools it creates.
"""

import eth_abi.abi
from hexbytes import HexBytes

from musd_indexer.constants import RWA_POOL_TEMPLATE
from musd_indexer.database.models import LiquidityPositionTable, RwaPoolTable, RwaSwapTable
from musd_indexer.events import decode_address, decode_uint_values
from musd_indexer.functions import get_lowercase_address
from musd_indexer.libraries import calculate_pool_share, saturating_subtract
from musd_indexer.logging import logger
from musd_indexer.processors.context import EventHandlerContext
from musd_indexer.processors.protocol import update_protocol_timestamps


def _sync_pool_reserves(context: EventHandlerContext, pool: RwaPoolTable) -> None:
    """
    Refresh the pool reserves and total liquidity from the contract. Each value is read
    independently, and a failed read keeps the stored value.
    """

    reader = context.reader
    block_number = context.block_number

    if (reserve_musd := reader.reserve_musd(pool.id, block_number)) is not None:
        pool.reserve_musd = reserve_musd
    if (reserve_rwa := reader.reserve_rwa(pool.id, block_number)) is not None:
        pool.reserve_rwa = reserve_rwa
    if (total_liquidity := reader.total_liquidity(pool.id, block_number)) is not None:
        pool.total_liquidity = total_liquidity


def _update_liquidity_position(
    context: EventHandlerContext,
    pool: RwaPoolTable,
    provider: str,
) -> LiquidityPositionTable:
    context.store.get_or_create_user(provider)
    position = context.store.get_or_create_liquidity_position(pool.id, provider)

    if (
        liquidity_balance := context.reader.liquidity_balance(
            pool.id, provider, context.block_number
        )
    ) is not None:
        position.liquidity_provided = liquidity_balance

    position.amount_musd, position.amount_rwa = calculate_pool_share(
        liquidity_provided=position.liquidity_provided,
        reserve_musd=pool.reserve_musd,
        reserve_rwa=pool.reserve_rwa,
        total_liquidity=pool.total_liquidity,
    )
    position.block_number = context.block_number
    position.timestamp = context.block_timestamp
    context.store.save(position)

    return position


def process_pool_created_event(context: EventHandlerContext) -> None:
    """
    Process a PoolCreated event from the pool factory.

    An existing record for the pool is reset. The new pool is registered as a data source so its
    own events are fetched.

    EVENT DEFINITION
    # event PoolCreated(
    #     address indexed pool,
    #     address indexed mUSD,
    #     address indexed rwaToken,
    #     address verifier,
    #     bytes32 imageId
    # );
    """

    pool_address = decode_address(context.event["topics"][1])
    musd_token = decode_address(context.event["topics"][2])
    rwa_token = decode_address(context.event["topics"][3])
    verifier, image_id = eth_abi.abi.decode(
        types=["address", "bytes32"],
        data=context.event["data"],
    )

    symbol = context.reader.token_symbol(rwa_token, context.block_number)
    if symbol is None:
        symbol = ""

    pool = context.store.load(RwaPoolTable, pool_address)
    if pool is None:
        pool = context.store.create_default(RwaPoolTable, pool_address)

    pool.musd_token = musd_token
    pool.rwa_token = rwa_token
    pool.asset_symbol = symbol
    pool.verifier = get_lowercase_address(verifier)
    pool.policy_id = HexBytes(image_id).to_0x_hex()
    pool.reserve_musd = 0
    pool.reserve_rwa = 0
    pool.total_liquidity = 0
    pool.total_volume = 0
    pool.total_swaps = 0
    pool.created_at_block = context.block_number
    pool.created_at_timestamp = context.block_timestamp
    context.store.save(pool)

    context.store.register_data_source(
        address=pool_address,
        template=RWA_POOL_TEMPLATE,
        block_number=context.block_number,
    )

    context.stats.total_pools += 1
    logger.info(
        f"RWA pool {pool_address} created at block {context.block_number} "
        f"(asset {symbol or rwa_token})"
    )

    update_protocol_timestamps(context)


def process_liquidity_added_event(context: EventHandlerContext) -> None:
    """
    Process a LiquidityAdded event.

    EVENT DEFINITION
    # event LiquidityAdded(
    #     address indexed provider,
    #     uint256 amountMUSD,
    #     uint256 amountRWA
    # );
    """

    provider = decode_address(context.event["topics"][1])
    amount_musd, amount_rwa = decode_uint_values(event=context.event, num_values=2)

    pool = context.store.get_or_create_pool(get_lowercase_address(context.event["address"]))
    _sync_pool_reserves(context, pool)
    pool.total_volume += amount_musd + amount_rwa
    context.store.save(pool)

    _update_liquidity_position(context, pool, provider)

    update_protocol_timestamps(context)


def process_liquidity_removed_event(context: EventHandlerContext) -> None:
    """
    Process a LiquidityRemoved event.

    The withdrawn amounts are subtracted from the reserves after they are refreshed from the
    contract.

    EVENT DEFINITION
    # event LiquidityRemoved(
    #     address indexed provider,
    #     uint256 amountMUSD,
    #     uint256 amountRWA
    # );
    """

    provider = decode_address(context.event["topics"][1])
    amount_musd, amount_rwa = decode_uint_values(event=context.event, num_values=2)

    pool = context.store.get_or_create_pool(get_lowercase_address(context.event["address"]))
    _sync_pool_reserves(context, pool)
    pool.reserve_musd = saturating_subtract(pool.reserve_musd, amount_musd)
    pool.reserve_rwa = saturating_subtract(pool.reserve_rwa, amount_rwa)
    context.store.save(pool)

    _update_liquidity_position(context, pool, provider)

    update_protocol_timestamps(context)


def process_swap_event(context: EventHandlerContext) -> None:
    """
    Process a Swap event.

    The pool counters are authoritative. The protocol swap count is copied from the pool that
    emitted the event, while the protocol volume accumulates across all pools.

    EVENT DEFINITION
    # event Swap(
    #     address indexed user,
    #     address indexed tokenIn,
    #     address indexed tokenOut,
    #     uint256 amountIn,
    #     uint256 amountOut
    # );
    """

    user_address = decode_address(context.event["topics"][1])
    token_in = decode_address(context.event["topics"][2])
    token_out = decode_address(context.event["topics"][3])
    amount_in, amount_out = decode_uint_values(event=context.event, num_values=2)

    pool = context.store.get_or_create_pool(get_lowercase_address(context.event["address"]))
    user = context.store.get_or_create_user(user_address)

    _sync_pool_reserves(context, pool)
    pool.total_volume += amount_in
    pool.total_swaps += 1
    context.store.save(pool)

    context.store.save(
        RwaSwapTable(
            id=context.record_id,
            pool_id=pool.id,
            user_id=user.id,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            tx_hash=HexBytes(context.event["transactionHash"]).to_0x_hex(),
            block_number=context.block_number,
            timestamp=context.block_timestamp,
        )
    )

    context.stats.total_volume += amount_in
    context.stats.total_swaps = pool.total_swaps

    update_protocol_timestamps(context)
