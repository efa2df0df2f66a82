from .config import settings
from .logging import logger
from .version import __version__

# isort: split

from .indexer import process_event, update_indexer
from .reader import ChainReader, Web3ChainReader
from .store import EntityStore

# isort: split

from . import exceptions, libraries, processors, queries

__all__ = (
    "ChainReader",
    "EntityStore",
    "Web3ChainReader",
    "__version__",
    "exceptions",
    "libraries",
    "logger",
    "process_event",
    "processors",
    "queries",
    "settings",
    "update_indexer",
)
