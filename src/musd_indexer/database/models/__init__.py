from .base import Base
from .indexer import DataSourceTable, IndexerCheckpointTable
from .musd import MusdPositionTable, UserTable
from .pools import LiquidityPositionTable, RwaPoolTable, RwaSwapTable
from .protocol import ProtocolStatsTable
from .superstake import SuperStakePositionHistoryTable, SuperStakePositionTable

__all__ = (
    "Base",
    "DataSourceTable",
    "IndexerCheckpointTable",
    "LiquidityPositionTable",
    "MusdPositionTable",
    "ProtocolStatsTable",
    "RwaPoolTable",
    "RwaSwapTable",
    "SuperStakePositionHistoryTable",
    "SuperStakePositionTable",
    "UserTable",
)
