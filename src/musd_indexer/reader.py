from collections.abc import Sequence
from typing import Protocol, cast

import eth_abi.abi
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.types import TxParams

from musd_indexer.functions import RPC_ERRORS, encode_function_calldata, get_checksum_address
from musd_indexer.logging import logger


class ChainReader(Protocol):
    """
    Authoritative contract reads at a given block. Each method returns None if the call reverts,
    the node cannot be reached, or the result cannot be decoded.
    """

    def reserve_musd(self, pool: str, block_number: int) -> int | None: ...

    def reserve_rwa(self, pool: str, block_number: int) -> int | None: ...

    def total_liquidity(self, pool: str, block_number: int) -> int | None: ...

    def liquidity_balance(self, pool: str, user: str, block_number: int) -> int | None: ...

    def token_symbol(self, token: str, block_number: int) -> str | None: ...


class Web3ChainReader:
    """
    A `ChainReader` performing `eth_call` requests through a Web3 connection.
    """

    def __init__(self, w3: Web3) -> None:
        self.w3 = w3

    def _call(
        self,
        address: str,
        function_prototype: str,
        function_arguments: Sequence[str] | None,
        block_number: int,
    ) -> bytes | None:
        try:
            return bytes(
                self.w3.eth.call(
                    TxParams(
                        to=get_checksum_address(address),
                        data=encode_function_calldata(
                            function_prototype=function_prototype,
                            function_arguments=function_arguments,
                        ),
                    ),
                    block_identifier=block_number,
                )
            )
        except RPC_ERRORS as exc:
            logger.debug(
                f"Call to {function_prototype} at {address} failed at block {block_number}: {exc}"
            )
            return None

    def _call_uint(
        self,
        address: str,
        function_prototype: str,
        function_arguments: Sequence[str] | None,
        block_number: int,
    ) -> int | None:
        result = self._call(address, function_prototype, function_arguments, block_number)
        if result is None:
            return None

        try:
            (value,) = eth_abi.abi.decode(types=["uint256"], data=result)
        except DecodingError:
            logger.debug(f"Could not decode {function_prototype} result {result!r} from {address}")
            return None
        return cast("int", value)

    def reserve_musd(self, pool: str, block_number: int) -> int | None:
        return self._call_uint(pool, "reserveMUSD()", None, block_number)

    def reserve_rwa(self, pool: str, block_number: int) -> int | None:
        return self._call_uint(pool, "reserveRWA()", None, block_number)

    def total_liquidity(self, pool: str, block_number: int) -> int | None:
        return self._call_uint(pool, "totalLiquidity()", None, block_number)

    def liquidity_balance(self, pool: str, user: str, block_number: int) -> int | None:
        return self._call_uint(
            pool,
            "liquidityBalances(address)",
            [get_checksum_address(user)],
            block_number,
        )

    def token_symbol(self, token: str, block_number: int) -> str | None:
        result = self._call(token, "symbol()", None, block_number)
        if result is None:
            return None

        try:
            (symbol,) = eth_abi.abi.decode(types=["string"], data=result)
            return cast("str", symbol)
        except DecodingError:
            pass

        # Some tokens return the symbol as a fixed-length bytes32 value
        try:
            (symbol,) = eth_abi.abi.decode(types=["bytes32"], data=result)
        except DecodingError:
            logger.debug(f"Could not decode symbol() result {result!r} from {token}")
            return None
        return cast("bytes", symbol).decode("utf-8", errors="ignore").strip("\x00")
