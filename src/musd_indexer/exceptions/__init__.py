from musd_indexer.exceptions.base import (
    ConfigurationError,
    MusdIndexerError,
    MusdIndexerValueError,
)
from musd_indexer.exceptions.database import BackupExists
from musd_indexer.exceptions.fetching import FetchingError, LogFetchingTimeout
from musd_indexer.exceptions.processing import (
    EventProcessingError,
    OutOfOrderEvent,
    UnknownEvent,
)

from . import base, database, fetching, processing

__all__ = (
    "BackupExists",
    "ConfigurationError",
    "EventProcessingError",
    "FetchingError",
    "LogFetchingTimeout",
    "MusdIndexerError",
    "MusdIndexerValueError",
    "OutOfOrderEvent",
    "UnknownEvent",
    "base",
    "database",
    "fetching",
    "processing",
)
