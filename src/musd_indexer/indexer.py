import operator

import tqdm
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from sqlalchemy.orm import Session
from web3 import Web3
from web3.types import LogReceipt

from musd_indexer.config import IndexerSettings, Settings
from musd_indexer.constants import RWA_POOL_TEMPLATE
from musd_indexer.database.models import IndexerCheckpointTable, ProtocolStatsTable
from musd_indexer.events import (
    MusdEvent,
    RwaPoolEvent,
    RwaPoolFactoryEvent,
    SuperStakeEvent,
    decode_address,
)
from musd_indexer.exceptions import OutOfOrderEvent
from musd_indexer.functions import fetch_logs_retrying, get_checksum_address
from musd_indexer.logging import logger
from musd_indexer.processors import EventHandlerContext, dispatch_event
from musd_indexer.reader import ChainReader, Web3ChainReader
from musd_indexer.store import EntityStore

INDEXED_TOPICS: list[HexBytes] = [
    event.value
    for event_group in (MusdEvent, RwaPoolFactoryEvent, RwaPoolEvent, SuperStakeEvent)
    for event in event_group
]


def _check_event_order(checkpoint: IndexerCheckpointTable, event: LogReceipt) -> None:
    """
    Raise if the event does not strictly follow the last reduced event.
    """

    if checkpoint.last_block_number is None or checkpoint.last_log_index is None:
        return

    if (event["blockNumber"], event["logIndex"]) <= (
        checkpoint.last_block_number,
        checkpoint.last_log_index,
    ):
        raise OutOfOrderEvent(
            block_number=event["blockNumber"],
            log_index=event["logIndex"],
            last_block_number=checkpoint.last_block_number,
            last_log_index=checkpoint.last_log_index,
        )


def process_event(
    *,
    store: EntityStore,
    stats: ProtocolStatsTable,
    checkpoint: IndexerCheckpointTable,
    event: LogReceipt,
    reader: ChainReader,
    block_timestamp: int,
    options: IndexerSettings,
) -> None:
    """
    Reduce a single event into the entity store.

    The handler runs inside a SAVEPOINT, so an exception leaves no partial writes from the event.
    The exception is re-raised after the rollback.
    """

    _check_event_order(checkpoint, event)

    context = EventHandlerContext(
        store=store,
        stats=stats,
        event=event,
        reader=reader,
        block_timestamp=block_timestamp,
        options=options,
    )

    with store.session.begin_nested():
        dispatch_event(context)
        checkpoint.last_block_number = event["blockNumber"]
        checkpoint.last_log_index = event["logIndex"]
        store.save(checkpoint)


def _get_block_timestamp(w3: Web3, event: LogReceipt, cache: dict[int, int]) -> int:
    """
    Get the timestamp for the block containing the event. Nodes that include `blockTimestamp` in
    log results save a block header request.
    """

    block_number = event["blockNumber"]
    if block_number in cache:
        return cache[block_number]

    timestamp: int | str | None = event.get("blockTimestamp")  # type: ignore[assignment]
    if timestamp is None:
        block = w3.eth.get_block(block_number)
        timestamp = block["timestamp"]
    elif isinstance(timestamp, str):
        timestamp = int(timestamp, 16)

    cache[block_number] = timestamp
    return timestamp


def sort_and_deduplicate_events(events: list[LogReceipt]) -> list[LogReceipt]:
    """
    Drop logs removed by a reorg and repeated copies of the same log, and return the remainder in
    blockchain order.
    """

    unique_events: dict[tuple[int, int], LogReceipt] = {}
    for event in events:
        if event.get("removed"):
            continue
        unique_events.setdefault((event["blockNumber"], event["logIndex"]), event)

    return sorted(unique_events.values(), key=operator.itemgetter("blockNumber", "logIndex"))


def _get_event_sources(
    w3: Web3,
    store: EntityStore,
    settings: Settings,
    start_block: int,
    end_block: int,
) -> list[ChecksumAddress]:
    """
    Get the addresses of all contracts that may emit indexed events in the block range, including
    pools created by the factory within the range.
    """

    contracts = settings.contracts
    addresses: set[str] = {
        address
        for address in (contracts.musd, contracts.rwa_pool_factory, contracts.superstake)
        if address is not None
    }
    addresses.update(
        data_source.id for data_source in store.get_data_sources(template=RWA_POOL_TEMPLATE)
    )

    if contracts.rwa_pool_factory is not None:
        for pool_created_event in fetch_logs_retrying(
            w3=w3,
            start_block=start_block,
            end_block=end_block,
            addresses=[get_checksum_address(contracts.rwa_pool_factory)],
            topics=[RwaPoolFactoryEvent.POOL_CREATED.value],
        ):
            addresses.add(decode_address(pool_created_event["topics"][1]))

    return [get_checksum_address(address) for address in sorted(addresses)]


def update_indexer(
    *,
    w3: Web3,
    session: Session,
    settings: Settings,
    start_block: int,
    end_block: int,
    reader: ChainReader | None = None,
    no_progress: bool = False,
) -> int:
    """
    Fetch and reduce all indexed events in the inclusive block range, then stamp the checkpoint
    with the end block. Changes are flushed but not committed.

    Returns the number of events processed.
    """

    if reader is None:
        reader = Web3ChainReader(w3)

    store = EntityStore(session)
    stats = store.get_or_create_protocol_stats()
    checkpoint = store.get_or_create_checkpoint(settings.chain_id)

    event_sources = _get_event_sources(
        w3=w3,
        store=store,
        settings=settings,
        start_block=start_block,
        end_block=end_block,
    )

    events: list[LogReceipt] = []
    if event_sources:
        events = sort_and_deduplicate_events(
            fetch_logs_retrying(
                w3=w3,
                start_block=start_block,
                end_block=end_block,
                addresses=event_sources,
                topics=INDEXED_TOPICS,
            )
        )
    else:
        logger.warning("No contract addresses are configured, skipping event fetching.")

    timestamp_cache: dict[int, int] = {}
    for event in tqdm.tqdm(
        events,
        desc="Processing events",
        leave=False,
        disable=no_progress,
    ):
        process_event(
            store=store,
            stats=stats,
            checkpoint=checkpoint,
            event=event,
            reader=reader,
            block_timestamp=_get_block_timestamp(w3, event, timestamp_cache),
            options=settings.indexer,
        )

    checkpoint.last_update_block = end_block
    store.save(checkpoint)

    logger.debug(f"Processed {len(events)} events in block range {start_block}-{end_block}")
    return len(events)
