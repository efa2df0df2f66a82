import pathlib
import sqlite3
from typing import Any

from alembic import command
from alembic.config import Config
from sqlalchemy import URL, Engine, create_engine, event, text
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from musd_indexer.config import settings
from musd_indexer.database.models import Base
from musd_indexer.exceptions.database import BackupExists
from musd_indexer.logging import logger


def create_sqlite_engine(db_path: pathlib.Path | None) -> Engine:
    """
    Create an engine for the SQLite database at the given path, or an in-memory database if the
    path is None.

    The pysqlite driver defers BEGIN until the first write, which breaks SAVEPOINT handling. The
    driver's transaction handling is disabled and BEGIN is emitted by SQLAlchemy instead, so each
    event can be reduced inside its own SAVEPOINT.
    """

    engine = create_engine(
        URL.create(
            drivername="sqlite",
            database=None if db_path is None else str(db_path.absolute()),
        )
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(
        dbapi_connection: sqlite3.Connection,
        connection_record: Any,  # noqa: ARG001
    ) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Any) -> None:
        connection.exec_driver_sql("BEGIN")

    return engine


def backup_sqlite_database(db_path: pathlib.Path) -> pathlib.Path:
    assert db_path.exists()

    backup_path = pathlib.Path(db_path).with_suffix(db_path.suffix + ".bak")
    if backup_path.exists():
        raise BackupExists(path=backup_path)

    engine = create_engine(
        f"sqlite:///{db_path.absolute()}",
    )
    with engine.connect() as connection:
        connection.execute(
            text("PRAGMA wal_checkpoint(FULL);"),
        )

    with sqlite3.connect(db_path) as src, sqlite3.connect(backup_path) as dest:
        src.backup(target=dest)

    logger.info(f"Backed up SQLite database to {backup_path}")
    return backup_path


def create_new_sqlite_database(db_path: pathlib.Path) -> None:
    engine = create_engine(
        f"sqlite:///{db_path.absolute()}",
    )
    with engine.connect() as connection:
        assert (
            connection.execute(
                text("PRAGMA journal_mode=WAL;"),
            ).scalar()
            == "wal"
        )
        connection.execute(
            text("PRAGMA auto_vacuum=FULL;"),
        )

        Base.metadata.create_all(bind=engine)
        connection.execute(
            text("VACUUM;"),
        )

        logger.info(f"Initialized new SQLite database at {db_path}")
        command.stamp(get_alembic_config(db_path=db_path), "head")


def compact_sqlite_database(db_path: pathlib.Path) -> None:
    """
    Rebuild the database file without free pages. The write-ahead log is checkpointed and truncated
    afterwards, so the size of the database file reflects the compacted contents.
    """

    engine = create_engine(
        f"sqlite:///{db_path.absolute()}",
    )
    with engine.connect() as connection:
        connection.execute(
            text("VACUUM;"),
        )
        connection.execute(
            text("PRAGMA wal_checkpoint(TRUNCATE);"),
        )
        logger.info(f"Compacted SQLite database at {db_path}")


def remove_sqlite_database(db_path: pathlib.Path) -> None:
    """
    Delete the database file and its write-ahead log and shared-memory files.
    """

    for path in (
        db_path,
        db_path.with_name(db_path.name + "-wal"),
        db_path.with_name(db_path.name + "-shm"),
    ):
        path.unlink(missing_ok=True)
    logger.info(f"Removed SQLite database at {db_path}")


def upgrade_existing_sqlite_database() -> None:
    command.upgrade(get_alembic_config(), "head")
    logger.info("Updated existing SQLite database.")


def get_scoped_sqlite_session(database_path: pathlib.Path) -> scoped_session[Session]:
    return scoped_session(
        session_factory=sessionmaker(
            bind=create_sqlite_engine(database_path),
        )
    )


def get_alembic_config(db_path: pathlib.Path | None = None) -> Config:
    if db_path is None:
        db_path = settings.database.path

    cfg = Config()
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path.absolute()}")
    cfg.set_main_option("script_location", "musd_indexer:migrations")

    return cfg
