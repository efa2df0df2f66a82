from collections.abc import Callable
from unittest.mock import MagicMock

import eth_abi.abi
import pytest
import requests
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError
from web3.types import LogReceipt

import musd_indexer.reader
from musd_indexer.functions import encode_function_calldata, get_checksum_address
from musd_indexer.queries import get_pool
from musd_indexer.reader import Web3ChainReader
from musd_indexer.store import EntityStore

from conftest import MUSD_ADDRESS, POOL_ADDRESS, RWA_TOKEN_ADDRESS, USER_ADDRESS, EventProcessor


@pytest.fixture
def w3() -> MagicMock:
    return MagicMock()


@pytest.fixture
def reader(w3: MagicMock) -> Web3ChainReader:
    return Web3ChainReader(w3)


def test_reserve_reads(w3: MagicMock, reader: Web3ChainReader):
    w3.eth.call.return_value = HexBytes(eth_abi.abi.encode(["uint256"], [1_234]))

    assert reader.reserve_musd(POOL_ADDRESS, 10) == 1_234
    transaction = w3.eth.call.call_args.args[0]
    assert transaction["to"] == get_checksum_address(POOL_ADDRESS)
    assert transaction["data"] == encode_function_calldata("reserveMUSD()", None)
    assert w3.eth.call.call_args.kwargs["block_identifier"] == 10

    assert reader.reserve_rwa(POOL_ADDRESS, 11) == 1_234
    assert w3.eth.call.call_args.args[0]["data"] == encode_function_calldata("reserveRWA()", None)

    assert reader.total_liquidity(POOL_ADDRESS, 12) == 1_234
    assert w3.eth.call.call_args.args[0]["data"] == encode_function_calldata(
        "totalLiquidity()", None
    )


def test_uint256_max_read(w3: MagicMock, reader: Web3ChainReader):
    w3.eth.call.return_value = HexBytes(eth_abi.abi.encode(["uint256"], [2**256 - 1]))
    assert reader.total_liquidity(POOL_ADDRESS, 1) == 2**256 - 1


def test_liquidity_balance_passes_checksummed_user(
    w3: MagicMock,
    reader: Web3ChainReader,
    monkeypatch: pytest.MonkeyPatch,
):
    calldata_encoder = MagicMock(wraps=encode_function_calldata)
    monkeypatch.setattr(musd_indexer.reader, "encode_function_calldata", calldata_encoder)
    w3.eth.call.return_value = HexBytes(eth_abi.abi.encode(["uint256"], [42]))

    assert reader.liquidity_balance(POOL_ADDRESS, USER_ADDRESS, 5) == 42

    assert calldata_encoder.call_args.kwargs == {
        "function_prototype": "liquidityBalances(address)",
        "function_arguments": [get_checksum_address(USER_ADDRESS)],
    }
    assert w3.eth.call.call_args.args[0]["data"] == encode_function_calldata(
        "liquidityBalances(address)", [get_checksum_address(USER_ADDRESS)]
    )


@pytest.mark.parametrize(
    "failure",
    [
        ContractLogicError("execution reverted"),
        requests.ConnectionError("node unreachable"),
        requests.Timeout("read timed out"),
    ],
    ids=["reverted", "connection-error", "timeout"],
)
def test_failed_calls_return_none(
    w3: MagicMock,
    reader: Web3ChainReader,
    failure: Exception,
):
    w3.eth.call.side_effect = failure

    assert reader.reserve_musd(POOL_ADDRESS, 1) is None
    assert reader.reserve_rwa(POOL_ADDRESS, 1) is None
    assert reader.total_liquidity(POOL_ADDRESS, 1) is None
    assert reader.liquidity_balance(POOL_ADDRESS, USER_ADDRESS, 1) is None
    assert reader.token_symbol(RWA_TOKEN_ADDRESS, 1) is None


@pytest.mark.parametrize("result", [b"", b"\x01\x02"], ids=["empty", "short"])
def test_undecodable_uint_returns_none(w3: MagicMock, reader: Web3ChainReader, result: bytes):
    w3.eth.call.return_value = HexBytes(result)
    assert reader.reserve_musd(POOL_ADDRESS, 1) is None
    assert reader.liquidity_balance(POOL_ADDRESS, USER_ADDRESS, 1) is None


def test_token_symbol_string(w3: MagicMock, reader: Web3ChainReader):
    w3.eth.call.return_value = HexBytes(eth_abi.abi.encode(["string"], ["TBILL"]))

    assert reader.token_symbol(RWA_TOKEN_ADDRESS, 3) == "TBILL"
    transaction = w3.eth.call.call_args.args[0]
    assert transaction["to"] == get_checksum_address(RWA_TOKEN_ADDRESS)
    assert transaction["data"] == encode_function_calldata("symbol()", None)


def test_token_symbol_bytes32(w3: MagicMock, reader: Web3ChainReader):
    w3.eth.call.return_value = HexBytes(
        eth_abi.abi.encode(["bytes32"], [b"MKR".ljust(32, b"\x00")])
    )
    assert reader.token_symbol(RWA_TOKEN_ADDRESS, 3) == "MKR"


def test_token_symbol_undecodable(w3: MagicMock, reader: Web3ChainReader):
    w3.eth.call.return_value = HexBytes(b"\x01\x02")
    assert reader.token_symbol(RWA_TOKEN_ADDRESS, 3) is None


def test_swap_reduced_while_node_unreachable(
    w3: MagicMock,
    build_log: Callable[..., LogReceipt],
    process: EventProcessor,
    store: EntityStore,
):
    process.reader = Web3ChainReader(w3)

    def swap(block_number: int) -> LogReceipt:
        return build_log(
            address=POOL_ADDRESS,
            signature="Swap(address,address,address,uint256,uint256)",
            indexed=[USER_ADDRESS, MUSD_ADDRESS, RWA_TOKEN_ADDRESS],
            data_types=["uint256", "uint256"],
            data_values=[100, 45],
            block_number=block_number,
        )

    w3.eth.call.return_value = HexBytes(eth_abi.abi.encode(["uint256"], [500]))
    process(swap(block_number=1))

    w3.eth.call.side_effect = requests.ConnectionError("node unreachable")
    process(swap(block_number=2))

    pool = get_pool(store.session, POOL_ADDRESS)
    assert pool is not None
    assert pool.reserve_musd == pool.reserve_rwa == pool.total_liquidity == 500
    assert pool.total_swaps == 2
    assert process.checkpoint.last_block_number == 2
