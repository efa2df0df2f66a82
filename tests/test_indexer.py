from collections.abc import Callable
from typing import Any

import pytest
from hexbytes import HexBytes
from sqlalchemy.orm import Session
from web3.types import LogReceipt

from musd_indexer.config import ContractSettings, DatabaseSettings, Settings
from musd_indexer.constants import RWA_POOL_TEMPLATE
from musd_indexer.database.models import IndexerCheckpointTable, UserTable
from musd_indexer.events import MusdEvent
from musd_indexer.exceptions import OutOfOrderEvent, UnknownEvent
from musd_indexer.indexer import sort_and_deduplicate_events, update_indexer
from musd_indexer.processors import EVENT_HANDLERS, EventHandlerContext
from musd_indexer.queries import get_liquidity_position, get_pool, get_superstake_position, get_user
from musd_indexer.store import EntityStore

from conftest import (
    FACTORY_ADDRESS,
    MUSD_ADDRESS,
    POOL_ADDRESS,
    RWA_TOKEN_ADDRESS,
    SUPERSTAKE_ADDRESS,
    USER_ADDRESS,
    VERIFIER_ADDRESS,
    EventProcessor,
    FakeChainReader,
    block_timestamp,
)

LOCKED = "CollateralLocked(address,uint256,uint256)"


def _lock(
    build_log: Callable[..., LogReceipt],
    block_number: int,
    log_index: int = 0,
    collateral: int = 10,
) -> LogReceipt:
    return build_log(
        address=MUSD_ADDRESS,
        signature=LOCKED,
        indexed=[USER_ADDRESS],
        data_types=["uint256", "uint256"],
        data_values=[collateral, 5],
        block_number=block_number,
        log_index=log_index,
    )


def test_events_must_advance(build_log: Callable[..., LogReceipt], process: EventProcessor):
    process(_lock(build_log, block_number=5, log_index=3))
    assert process.checkpoint.last_block_number == 5
    assert process.checkpoint.last_log_index == 3

    # same position
    with pytest.raises(OutOfOrderEvent):
        process(_lock(build_log, block_number=5, log_index=3))

    # earlier log in the same block
    with pytest.raises(OutOfOrderEvent):
        process(_lock(build_log, block_number=5, log_index=2))

    # earlier block
    with pytest.raises(OutOfOrderEvent):
        process(_lock(build_log, block_number=4, log_index=10))

    # rejected events leave no trace
    assert process.stats.total_collateral == 10

    process(_lock(build_log, block_number=5, log_index=4))
    process(_lock(build_log, block_number=6, log_index=0))
    assert process.stats.total_collateral == 30


def test_unknown_topic(build_log: Callable[..., LogReceipt], process: EventProcessor):
    event = build_log(
        address=MUSD_ADDRESS,
        signature="Transfer(address,address,uint256)",
        block_number=1,
    )
    with pytest.raises(UnknownEvent) as exc_info:
        process(event)

    assert exc_info.value.topic == HexBytes(event["topics"][0])
    assert process.checkpoint.last_block_number is None


def test_failed_handler_rolls_back_event(
    build_log: Callable[..., LogReceipt],
    process: EventProcessor,
    store: EntityStore,
    monkeypatch: pytest.MonkeyPatch,
):
    process(_lock(build_log, block_number=1))

    def _failing_handler(context: EventHandlerContext) -> None:
        context.stats.total_supply += 1_000
        new_user = context.store.get_or_create_user("0x9999999999999999999999999999999999999999")
        new_user.musd_balance = 1
        context.store.save(new_user)
        msg = "handler failed"
        raise RuntimeError(msg)

    monkeypatch.setitem(EVENT_HANDLERS, MusdEvent.COLLATERAL_LOCKED.value, _failing_handler)

    with pytest.raises(RuntimeError, match="handler failed"):
        process(_lock(build_log, block_number=2))

    assert process.stats.total_supply == 5
    assert store.load(UserTable, "0x9999999999999999999999999999999999999999") is None
    assert process.checkpoint.last_block_number == 1

    # the store remains usable after the rollback
    monkeypatch.undo()
    process(_lock(build_log, block_number=2))
    assert process.stats.total_supply == 10


def test_sort_and_deduplicate(build_log: Callable[..., LogReceipt]):
    first = _lock(build_log, block_number=1, log_index=0)
    second = _lock(build_log, block_number=1, log_index=1)
    third = _lock(build_log, block_number=2, log_index=0)
    removed = _lock(build_log, block_number=3, log_index=0)
    removed["removed"] = True  # type: ignore[index]

    assert sort_and_deduplicate_events([third, second, removed, first, second, first]) == [
        first,
        second,
        third,
    ]


class FakeEth:
    """
    Serves logs from a list, filtered the way a node filters an eth_getLogs request.
    """

    def __init__(self, logs: list[LogReceipt]) -> None:
        self.logs = logs
        self.get_block_calls: list[int] = []

    def get_logs(self, filter_params: dict[str, Any]) -> list[LogReceipt]:
        addresses = {address.lower() for address in filter_params["address"]}
        (topics,) = filter_params["topics"]
        return [
            log
            for log in self.logs
            if log["address"].lower() in addresses
            and filter_params["fromBlock"] <= log["blockNumber"] <= filter_params["toBlock"]
            and HexBytes(log["topics"][0]) in topics
        ]

    def get_block(self, block_number: int) -> dict[str, int]:
        self.get_block_calls.append(block_number)
        return {"timestamp": block_timestamp(block_number)}


class FakeWeb3:
    def __init__(self, logs: list[LogReceipt]) -> None:
        self.eth = FakeEth(logs)


@pytest.fixture
def indexer_settings(tmp_path) -> Settings:
    return Settings(
        database=DatabaseSettings(path=tmp_path / "unused.db"),
        contracts=ContractSettings(
            musd=MUSD_ADDRESS,
            rwa_pool_factory=FACTORY_ADDRESS,
            superstake=SUPERSTAKE_ADDRESS,
        ),
    )


def _chain_logs(build_log: Callable[..., LogReceipt]) -> list[LogReceipt]:
    pool_created = build_log(
        address=FACTORY_ADDRESS,
        signature="PoolCreated(address,address,address,address,bytes32)",
        indexed=[POOL_ADDRESS, MUSD_ADDRESS, RWA_TOKEN_ADDRESS],
        data_types=["address", "bytes32"],
        data_values=[VERIFIER_ADDRESS, b"\x01" * 32],
        block_number=3,
    )
    liquidity_added = build_log(
        address=POOL_ADDRESS,
        signature="LiquidityAdded(address,uint256,uint256)",
        indexed=[USER_ADDRESS],
        data_types=["uint256", "uint256"],
        data_values=[100, 50],
        block_number=4,
        log_index=2,
    )
    position_opened = build_log(
        address=SUPERSTAKE_ADDRESS,
        signature="PositionOpened(address,uint256,uint256,uint256)",
        indexed=[USER_ADDRESS],
        data_types=["uint256", "uint256", "uint256"],
        data_values=[10, 5, 2],
        block_number=4,
        log_index=1,
    )
    unrelated_transfer = build_log(
        address=MUSD_ADDRESS,
        signature="Transfer(address,address,uint256)",
        indexed=[USER_ADDRESS, FACTORY_ADDRESS],
        data_types=["uint256"],
        data_values=[1],
        block_number=2,
        log_index=1,
    )
    lock_without_timestamp = _lock(build_log, block_number=2, log_index=0)
    del lock_without_timestamp["blockTimestamp"]  # type: ignore[typeddict-item]

    return [
        position_opened,
        liquidity_added,
        pool_created,
        unrelated_transfer,
        lock_without_timestamp,
    ]


def test_update_indexer(
    build_log: Callable[..., LogReceipt],
    session: Session,
    indexer_settings: Settings,
):
    reader = FakeChainReader(
        reserves={POOL_ADDRESS: (100, 50, 10)},
        liquidity_balances={(POOL_ADDRESS, USER_ADDRESS): 10},
        symbols={RWA_TOKEN_ADDRESS: "TBILL"},
    )
    w3 = FakeWeb3(_chain_logs(build_log))

    num_events = update_indexer(
        w3=w3,  # type: ignore[arg-type]
        session=session,
        settings=indexer_settings,
        start_block=1,
        end_block=10,
        reader=reader,
        no_progress=True,
    )
    assert num_events == 4

    user = get_user(session, USER_ADDRESS)
    assert user is not None
    assert user.collateral_balance == 10

    pool = get_pool(session, POOL_ADDRESS)
    assert pool is not None
    assert pool.asset_symbol == "TBILL"
    assert pool.total_volume == 150

    position = get_liquidity_position(session, POOL_ADDRESS, USER_ADDRESS)
    assert position is not None
    assert position.amount_musd == 100

    superstake_position = get_superstake_position(session, USER_ADDRESS)
    assert superstake_position is not None
    assert superstake_position.opened_at_block == 4

    store = EntityStore(session)
    (data_source,) = store.get_data_sources(template=RWA_POOL_TEMPLATE)
    assert data_source.id == POOL_ADDRESS

    checkpoint = session.get(IndexerCheckpointTable, indexer_settings.chain_id)
    assert checkpoint is not None
    assert checkpoint.last_update_block == 10
    assert checkpoint.last_block_number == 4
    assert checkpoint.last_log_index == 2

    stats = store.get_or_create_protocol_stats()
    assert stats.updated_at_block == 4
    assert stats.updated_at_timestamp == block_timestamp(4)

    # only the log without a timestamp required a block header
    assert w3.eth.get_block_calls == [2]


def test_update_indexer_replay_is_rejected(
    build_log: Callable[..., LogReceipt],
    session: Session,
    indexer_settings: Settings,
):
    w3 = FakeWeb3(_chain_logs(build_log))

    update_indexer(
        w3=w3,  # type: ignore[arg-type]
        session=session,
        settings=indexer_settings,
        start_block=1,
        end_block=10,
        reader=FakeChainReader(),
        no_progress=True,
    )

    with pytest.raises(OutOfOrderEvent):
        update_indexer(
            w3=w3,  # type: ignore[arg-type]
            session=session,
            settings=indexer_settings,
            start_block=1,
            end_block=10,
            reader=FakeChainReader(),
            no_progress=True,
        )


def test_update_indexer_fetches_registered_pools(
    build_log: Callable[..., LogReceipt],
    session: Session,
    indexer_settings: Settings,
):
    logs = _chain_logs(build_log)
    w3 = FakeWeb3(logs)

    # the pool is created in the first range and emits events in the second
    update_indexer(
        w3=w3,  # type: ignore[arg-type]
        session=session,
        settings=indexer_settings,
        start_block=1,
        end_block=3,
        reader=FakeChainReader(),
        no_progress=True,
    )
    update_indexer(
        w3=w3,  # type: ignore[arg-type]
        session=session,
        settings=indexer_settings,
        start_block=4,
        end_block=4,
        reader=FakeChainReader(),
        no_progress=True,
    )

    pool = get_pool(session, POOL_ADDRESS)
    assert pool is not None
    assert pool.total_volume == 150
