import os
import tempfile

# The package creates its config file and database on import, so point it at a scratch directory
# before anything from musd_indexer is imported
os.environ.setdefault(
    "MUSD_INDEXER_CONFIG_DIR",
    tempfile.mkdtemp(prefix="musd_indexer_tests_"),
)

import logging  # noqa: E402
from collections.abc import Callable, Generator, Sequence  # noqa: E402
from dataclasses import dataclass, field  # noqa: E402
from typing import Any  # noqa: E402

import eth_abi.abi  # noqa: E402
import pytest  # noqa: E402
from eth_utils.crypto import keccak  # noqa: E402
from hexbytes import HexBytes  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from web3.types import LogReceipt  # noqa: E402

from musd_indexer.config import IndexerSettings  # noqa: E402
from musd_indexer.database.models import Base, IndexerCheckpointTable, ProtocolStatsTable  # noqa: E402
from musd_indexer.database.operations import create_sqlite_engine  # noqa: E402
from musd_indexer.indexer import process_event  # noqa: E402
from musd_indexer.logging import logger  # noqa: E402
from musd_indexer.reader import ChainReader  # noqa: E402
from musd_indexer.store import EntityStore  # noqa: E402

MUSD_ADDRESS = "0x1111111111111111111111111111111111111111"
FACTORY_ADDRESS = "0x2222222222222222222222222222222222222222"
SUPERSTAKE_ADDRESS = "0x3333333333333333333333333333333333333333"
POOL_ADDRESS = "0x4444444444444444444444444444444444444444"
RWA_TOKEN_ADDRESS = "0x5555555555555555555555555555555555555555"
VERIFIER_ADDRESS = "0x6666666666666666666666666666666666666666"
USER_ADDRESS = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
OTHER_USER_ADDRESS = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"

GENESIS_TIMESTAMP = 1_700_000_000


def block_timestamp(block_number: int) -> int:
    return GENESIS_TIMESTAMP + 12 * block_number


@pytest.fixture(scope="session", autouse=True)
def _set_musd_indexer_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    A session bound to a fresh in-memory database.
    """

    engine = create_sqlite_engine(None)
    Base.metadata.create_all(bind=engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def store(session: Session) -> EntityStore:
    return EntityStore(session)


@dataclass
class FakeChainReader:
    """
    A chain reader returning canned values. Missing values and methods named in `failing` behave
    like a reverted call.
    """

    reserves: dict[str, tuple[int, int, int]] = field(default_factory=dict)
    liquidity_balances: dict[tuple[str, str], int] = field(default_factory=dict)
    symbols: dict[str, str] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)

    def _reserve(self, method: str, pool: str, index: int) -> int | None:
        if method in self.failing or pool not in self.reserves:
            return None
        return self.reserves[pool][index]

    def reserve_musd(self, pool: str, block_number: int) -> int | None:  # noqa: ARG002
        return self._reserve("reserve_musd", pool, 0)

    def reserve_rwa(self, pool: str, block_number: int) -> int | None:  # noqa: ARG002
        return self._reserve("reserve_rwa", pool, 1)

    def total_liquidity(self, pool: str, block_number: int) -> int | None:  # noqa: ARG002
        return self._reserve("total_liquidity", pool, 2)

    def liquidity_balance(
        self,
        pool: str,
        user: str,
        block_number: int,  # noqa: ARG002
    ) -> int | None:
        if "liquidity_balance" in self.failing:
            return None
        return self.liquidity_balances.get((pool, user))

    def token_symbol(self, token: str, block_number: int) -> str | None:  # noqa: ARG002
        if "token_symbol" in self.failing:
            return None
        return self.symbols.get(token)


@pytest.fixture
def reader() -> FakeChainReader:
    return FakeChainReader()


def _build_log(
    *,
    address: str,
    signature: str,
    indexed: Sequence[str] = (),
    data_types: Sequence[str] = (),
    data_values: Sequence[Any] = (),
    block_number: int = 1,
    log_index: int = 0,
    transaction_hash: HexBytes | None = None,
) -> LogReceipt:
    if transaction_hash is None:
        transaction_hash = HexBytes(keccak(text=f"{block_number}-{log_index}-{signature}"))

    return LogReceipt(  # type: ignore[typeddict-item]
        address=address,
        topics=[
            HexBytes(keccak(text=signature)),
            *[HexBytes(eth_abi.abi.encode(["address"], [value])) for value in indexed],
        ],
        data=HexBytes(eth_abi.abi.encode(list(data_types), list(data_values))),
        blockNumber=block_number,
        blockTimestamp=block_timestamp(block_number),
        blockHash=HexBytes(keccak(text=f"block-{block_number}")),
        transactionHash=transaction_hash,
        transactionIndex=0,
        logIndex=log_index,
        removed=False,
    )


@pytest.fixture
def build_log() -> Callable[..., LogReceipt]:
    """
    Build an event log with ABI-encoded topics and data, e.g.

    ```
    build_log(
        address=MUSD_ADDRESS,
        signature="CollateralLocked(address,uint256,uint256)",
        indexed=[USER_ADDRESS],
        data_types=["uint256", "uint256"],
        data_values=[1000, 500],
        block_number=10,
    )
    ```
    """

    return _build_log


@dataclass
class EventProcessor:
    store: EntityStore
    stats: ProtocolStatsTable
    checkpoint: IndexerCheckpointTable
    reader: ChainReader
    options: IndexerSettings

    def __call__(self, event: LogReceipt) -> None:
        process_event(
            store=self.store,
            stats=self.stats,
            checkpoint=self.checkpoint,
            event=event,
            reader=self.reader,
            block_timestamp=event["blockTimestamp"],  # type: ignore[typeddict-item]
            options=self.options,
        )


@pytest.fixture
def process(store: EntityStore, reader: FakeChainReader) -> EventProcessor:
    """
    Reduce a single event through the same path used by the indexer.
    """

    return EventProcessor(
        store=store,
        stats=store.get_or_create_protocol_stats(),
        checkpoint=store.get_or_create_checkpoint(chain_id=1),
        reader=reader,
        options=IndexerSettings(),
    )
