from dataclasses import dataclass

from hexbytes import HexBytes
from web3.types import LogReceipt

from musd_indexer.config import IndexerSettings
from musd_indexer.database.models import ProtocolStatsTable
from musd_indexer.reader import ChainReader
from musd_indexer.store import EntityStore


@dataclass
class EventHandlerContext:
    """Context object passed to event handlers containing all necessary state."""

    store: EntityStore
    stats: ProtocolStatsTable
    event: LogReceipt
    reader: ChainReader
    block_timestamp: int
    options: IndexerSettings

    @property
    def block_number(self) -> int:
        return self.event["blockNumber"]

    @property
    def log_index(self) -> int:
        return self.event["logIndex"]

    @property
    def record_id(self) -> str:
        """
        The key for immutable records created by this event: {transaction hash}-{log index}
        """

        return f"{HexBytes(self.event['transactionHash']).to_0x_hex()}-{self.log_index}"
