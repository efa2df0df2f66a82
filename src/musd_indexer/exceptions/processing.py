from hexbytes import HexBytes

from musd_indexer.exceptions.base import MusdIndexerError


class EventProcessingError(MusdIndexerError):
    """
    Exception raised while reducing an event into the entity store.
    """


class OutOfOrderEvent(EventProcessingError):
    """
    Raised when an event arrives at or before the position of the last reduced event.

    Derived state cannot be repaired without a replay from scratch, so this is fatal for the run.
    """

    def __init__(
        self,
        block_number: int,
        log_index: int,
        last_block_number: int,
        last_log_index: int,
    ) -> None:
        self.block_number = block_number
        self.log_index = log_index
        self.last_block_number = last_block_number
        self.last_log_index = last_log_index
        super().__init__(
            message=f"Event at block {block_number}, log index {log_index} does not follow the "
            f"last processed event at block {last_block_number}, log index {last_log_index}."
        )

    def __reduce__(self) -> tuple[type["OutOfOrderEvent"], tuple[int, int, int, int]]:
        return self.__class__, (
            self.block_number,
            self.log_index,
            self.last_block_number,
            self.last_log_index,
        )


class UnknownEvent(EventProcessingError):
    """
    Raised when no handler is registered for an event topic.
    """

    def __init__(self, topic: HexBytes) -> None:
        self.topic = topic
        super().__init__(message=f"Unknown event topic: {topic.to_0x_hex()}")

    def __reduce__(self) -> tuple[type["UnknownEvent"], tuple[HexBytes]]:
        return self.__class__, (self.topic,)
