import functools
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import eth_abi.abi
from cchecksum import to_checksum_address
from eth_typing import ChecksumAddress, HexAddress
from eth_utils.address import to_normalized_address
from eth_utils.crypto import keccak
from hexbytes import HexBytes
from requests.exceptions import RequestException
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from web3 import Web3
from web3._utils.threads import Timeout
from web3.exceptions import Web3Exception
from web3.types import FilterParams, LogReceipt

from musd_indexer.exceptions import MusdIndexerValueError
from musd_indexer.exceptions.fetching import LogFetchingTimeout
from musd_indexer.logging import logger

# Failures of a JSON-RPC request: a node error response, or a transport that is down or too slow
RPC_ERRORS = (Timeout, Web3Exception, RequestException)


@functools.lru_cache(maxsize=512)
def get_checksum_address(address: HexAddress | str | bytes) -> ChecksumAddress:
    return to_checksum_address(address)


def get_lowercase_address(address: HexAddress | str | bytes) -> str:
    """
    Entities are keyed by the lowercase hex form of an address.
    """

    return to_normalized_address(address)


def encode_function_calldata(
    function_prototype: str, function_arguments: Sequence[Any] | None
) -> bytes:
    """
    Encode the calldata to execute a call to the given function prototype, with ordered arguments.
    The resulting bytes array will include the 4-byte function selector, followed by the
    ABI-encoded arguments.
    """

    if function_arguments is None:
        function_arguments = ()

    return keccak(text=function_prototype)[:4] + eth_abi.abi.encode(
        types=extract_argument_types_from_function_prototype(function_prototype),
        args=function_arguments,
    )


def extract_argument_types_from_function_prototype(function_prototype: str) -> list[str]:
    """
    Extract the argument types from the function prototype.

    e.g. the argument types for the prototype 'function(address,uint256)' are ['address','uint256']
    """

    if function_args := function_prototype[
        function_prototype.find("(") + 1 : function_prototype.find(")") :
    ]:
        return function_args.split(",")

    return []


def event_topic(event_prototype: str) -> HexBytes:
    """
    Get the topic hash for an event prototype, e.g. 'Transfer(address,address,uint256)'
    """

    return HexBytes(keccak(text=event_prototype))


@dataclass
class BlockSpan:
    """
    The number of blocks requested by a single `eth_getLogs` call. Providers limit the size of a
    response, so the span shrinks by a quarter after a failed request and grows by one percent
    (at least one block) after a successful one.
    """

    size: int
    ceiling: int

    def shrink(self) -> None:
        self.size = max(1, self.size * 3 // 4)

    def grow(self) -> None:
        self.size = min(self.ceiling, self.size + max(1, self.size // 100))


def fetch_logs_retrying(
    w3: Web3,
    start_block: int,
    end_block: int,
    addresses: Sequence[ChecksumAddress],
    topics: Sequence[HexBytes],
    *,
    max_retries: int = 10,
    max_blocks_per_request: int = 5_000,
) -> list[LogReceipt]:
    """
    Fetch the logs emitted by any of the given contracts whose first topic is one of `topics`,
    inclusive for the given block range.

    The range is requested in consecutive chunks. A failed request is retried after an exponential
    backoff with a smaller chunk, and `LogFetchingTimeout` is raised once a chunk fails
    `max_retries` times.
    """

    if end_block < start_block:
        msg = "End block cannot be earlier than start block."
        raise MusdIndexerValueError(message=msg)

    # An empty address list matches every contract on the chain
    if not addresses:
        return []

    span = BlockSpan(size=min(100, max_blocks_per_request), ceiling=max_blocks_per_request)
    retrier = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential_jitter(),
        retry=retry_if_exception_type(RPC_ERRORS),
    )

    event_logs: list[LogReceipt] = []
    chunk_start = start_block
    while chunk_start <= end_block:
        chunk_end = chunk_start
        chunk_logs: list[LogReceipt] = []
        try:
            for attempt in retrier:
                with attempt:
                    chunk_end = min(end_block, chunk_start + span.size - 1)
                    try:
                        chunk_logs = w3.eth.get_logs(
                            FilterParams(
                                address=list(addresses),
                                fromBlock=chunk_start,
                                toBlock=chunk_end,
                                topics=[list(topics)],
                            )
                        )
                    except RPC_ERRORS as exc:
                        span.shrink()
                        logger.debug(
                            f"Fetching logs for blocks {chunk_start}-{chunk_end} failed on attempt "
                            f"{attempt.retry_state.attempt_number} ({exc}), retrying with a span "
                            f"of {span.size} blocks"
                        )
                        raise
        except RetryError:
            raise LogFetchingTimeout(max_retries=max_retries) from None

        logger.debug(f"Fetched {len(chunk_logs)} logs for blocks {chunk_start}-{chunk_end}")
        event_logs.extend(chunk_logs)
        span.grow()
        chunk_start = chunk_end + 1

    return event_logs
