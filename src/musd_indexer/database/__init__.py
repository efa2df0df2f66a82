"""
The database holding the indexed state, opened from the path in the config file.

The schema revision is checked on import. Updates against a database created by an older release
can fail until it is upgraded with `musd_indexer database upgrade`.
"""

from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from musd_indexer.config import settings
from musd_indexer.database.operations import get_alembic_config, get_scoped_sqlite_session
from musd_indexer.logging import logger

db_session = get_scoped_sqlite_session(database_path=settings.database.path)


def get_current_database_revision() -> str | None:
    """
    Get the revision stamped in the database, or None if it has never been stamped.
    """

    with db_session() as session:
        return MigrationContext.configure(connection=session.connection()).get_current_revision()


def get_latest_database_revision() -> str | None:
    return ScriptDirectory.from_config(config=get_alembic_config()).get_current_head()


_current_revision = get_current_database_revision()
_latest_revision = get_latest_database_revision()
if _current_revision is not None and _current_revision != _latest_revision:
    logger.warning(
        f"The database at {settings.database.path} has schema revision {_current_revision}, but "
        f"this release writes revision {_latest_revision}. Indexed state cannot be updated until "
        "the database is migrated with 'musd_indexer database upgrade'."
    )
