"""
Data fetching exceptions.

Raised by the event source when blockchain logs or block headers cannot be retrieved.
"""

from musd_indexer.exceptions.base import MusdIndexerError


class FetchingError(MusdIndexerError):
    """
    Base exception for data fetching errors.
    """


class LogFetchingTimeout(FetchingError):
    """
    Raised when log fetching operations timeout after multiple retry attempts.
    """

    def __init__(self, max_retries: int) -> None:
        """
        Initialize LogFetchingTimeout.

        Args:
            max_retries: The maximum number of retry attempts that were made
        """
        self.max_retries = max_retries
        super().__init__(message=f"Timed out fetching logs after {max_retries} tries.")

    def __reduce__(self) -> tuple[type["LogFetchingTimeout"], tuple[int]]:
        return self.__class__, (self.max_retries,)
