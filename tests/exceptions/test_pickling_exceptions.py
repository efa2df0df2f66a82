import pathlib
import pickle

from hexbytes import HexBytes

from musd_indexer.exceptions import (
    BackupExists,
    ConfigurationError,
    LogFetchingTimeout,
    MusdIndexerError,
    OutOfOrderEvent,
    UnknownEvent,
)


def test_base_exception_pickling() -> None:
    """
    Test that the base exception keeps its message through a pickle round trip.
    """

    original_exception = MusdIndexerError(message="Something went wrong")
    unpickled_exception = pickle.loads(pickle.dumps(original_exception))

    assert type(unpickled_exception) is MusdIndexerError
    assert unpickled_exception.message == "Something went wrong"
    assert str(unpickled_exception) == "Something went wrong"


def test_out_of_order_event_pickling() -> None:
    """
    Test that the `OutOfOrderEvent` exception's `__reduce__` method allows the exception to be
    pickled and unpickled correctly.
    """

    original_exception = OutOfOrderEvent(
        block_number=10,
        log_index=1,
        last_block_number=10,
        last_log_index=2,
    )
    unpickled_exception = pickle.loads(pickle.dumps(original_exception))

    assert type(unpickled_exception) is OutOfOrderEvent
    assert unpickled_exception.block_number == 10
    assert unpickled_exception.log_index == 1
    assert unpickled_exception.last_block_number == 10
    assert unpickled_exception.last_log_index == 2
    assert unpickled_exception.message == original_exception.message


def test_unknown_event_pickling() -> None:
    topic = HexBytes("0x" + "12" * 32)
    original_exception = UnknownEvent(topic=topic)
    unpickled_exception = pickle.loads(pickle.dumps(original_exception))

    assert type(unpickled_exception) is UnknownEvent
    assert unpickled_exception.topic == topic
    assert unpickled_exception.message == f"Unknown event topic: 0x{'12' * 32}"


def test_log_fetching_timeout_pickling() -> None:
    original_exception = LogFetchingTimeout(max_retries=5)
    unpickled_exception = pickle.loads(pickle.dumps(original_exception))

    assert type(unpickled_exception) is LogFetchingTimeout
    assert unpickled_exception.max_retries == 5
    assert unpickled_exception.message == "Timed out fetching logs after 5 tries."


def test_configuration_error_pickling() -> None:
    original_exception = ConfigurationError(setting="rpc")
    unpickled_exception = pickle.loads(pickle.dumps(original_exception))

    assert type(unpickled_exception) is ConfigurationError
    assert unpickled_exception.setting == "rpc"
    assert unpickled_exception.message == original_exception.message


def test_backup_exists_pickling() -> None:
    original_exception = BackupExists(path=pathlib.Path("/tmp/musd_indexer.db.bak"))  # noqa: S108
    unpickled_exception = pickle.loads(pickle.dumps(original_exception))

    assert type(unpickled_exception) is BackupExists
    assert unpickled_exception.path == pathlib.Path("/tmp/musd_indexer.db.bak")  # noqa: S108
