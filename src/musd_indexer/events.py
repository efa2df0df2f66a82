from enum import Enum

import eth_abi.abi
from web3.types import LogReceipt

from musd_indexer.functions import event_topic, get_lowercase_address


class MusdEvent(Enum):
    COLLATERAL_ASSET_UPDATED = event_topic("CollateralAssetUpdated(address)")
    MINT_PERCENTAGE_UPDATED = event_topic("MintPercentageUpdated(uint256)")
    COLLATERAL_PRICE_UPDATED = event_topic("CollateralPriceUpdated(uint256)")
    MIN_HEALTH_FACTOR_UPDATED = event_topic("MinHealthFactorUpdated(uint256)")
    COLLATERAL_LOCKED = event_topic("CollateralLocked(address,uint256,uint256)")
    COLLATERAL_UNLOCKED = event_topic("CollateralUnlocked(address,uint256,uint256)")
    POSITION_LIQUIDATED = event_topic("PositionLiquidated(address,uint256,uint256)")


class RwaPoolFactoryEvent(Enum):
    POOL_CREATED = event_topic("PoolCreated(address,address,address,address,bytes32)")


class RwaPoolEvent(Enum):
    LIQUIDITY_ADDED = event_topic("LiquidityAdded(address,uint256,uint256)")
    LIQUIDITY_REMOVED = event_topic("LiquidityRemoved(address,uint256,uint256)")
    SWAP = event_topic("Swap(address,address,address,uint256,uint256)")


class SuperStakeEvent(Enum):
    TOKENS_CONFIGURED = event_topic("TokensConfigured(address,address)")
    SWAPPER_UPDATED = event_topic("SwapperUpdated(address)")
    MAX_LOOPS_UPDATED = event_topic("MaxLoopsUpdated(uint256)")
    POSITION_OPENED = event_topic("PositionOpened(address,uint256,uint256,uint256)")
    POSITION_CLOSED = event_topic("PositionClosed(address,uint256,uint256)")


def decode_address(input_: bytes) -> str:
    """
    Get the lowercase address from the given byte stream.
    """

    (address,) = eth_abi.abi.decode(types=["address"], data=input_)
    return get_lowercase_address(address)


def decode_uint_values(
    event: LogReceipt,
    num_values: int | None = None,
) -> tuple[int, ...]:
    """
    Decode uint256 values from event data.
    """

    if num_values is None:
        num_values = len(event["data"]) // 32
    types = ["uint256"] * num_values
    return eth_abi.abi.decode(types=types, data=event["data"])
