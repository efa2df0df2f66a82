import click

from musd_indexer.cli import cli
from musd_indexer.config import settings
from musd_indexer.database import (
    db_session,
    get_current_database_revision,
    get_latest_database_revision,
)
from musd_indexer.database.operations import (
    backup_sqlite_database,
    compact_sqlite_database,
    create_new_sqlite_database,
    remove_sqlite_database,
    upgrade_existing_sqlite_database,
)
from musd_indexer.exceptions.database import BackupExists


@cli.group()
def database() -> None:
    """
    Manage the database of indexed state
    """


@database.command("backup")
def database_backup() -> None:
    """
    Copy the database to a '.bak' file in the same directory.
    """

    try:
        backup_path = backup_sqlite_database(settings.database.path)
    except BackupExists as exc:
        if not click.confirm(
            f"A backup already exists at {exc.path}. Do you want to replace it?",
            default=False,
        ):
            raise click.Abort from None
        exc.path.unlink()
        backup_path = backup_sqlite_database(settings.database.path)

    click.echo(f"Backed up {settings.database.path} to {backup_path}.")


@database.command("reset")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def database_reset(*, force: bool) -> None:
    """
    Delete all indexed state. The next update starts again from the configured start block.
    """

    if not force and not click.confirm(
        f"All users, mUSD positions, RWA pools, liquidity positions, swaps, SuperStake positions "
        f"and protocol totals in {settings.database.path} will be deleted, together with the "
        f"indexer checkpoint for chain {settings.chain_id}. The next update will start again from "
        f"block {settings.indexer.start_block}. Do you want to proceed?",
        default=False,
    ):
        raise click.Abort

    # Pooled connections still refer to the deleted file
    db_session.remove()
    db_session.get_bind().dispose()

    remove_sqlite_database(settings.database.path)
    create_new_sqlite_database(settings.database.path)
    click.echo(f"Created an empty database at {settings.database.path}.")


@database.command("upgrade")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def database_upgrade(*, force: bool) -> None:
    """
    Migrate the database to the schema of this release. Indexed state is kept.
    """

    current_revision = get_current_database_revision()
    latest_revision = get_latest_database_revision()
    if current_revision == latest_revision:
        click.echo(f"The database is already at the latest revision ({latest_revision}).")
        return

    if not force and not click.confirm(
        f"The database at {settings.database.path} will be migrated from revision "
        f"{current_revision} to {latest_revision}. Consider running 'musd_indexer database "
        "backup' first. Do you want to proceed?",
        default=False,
    ):
        raise click.Abort

    upgrade_existing_sqlite_database()
    click.echo(f"Migrated the database to revision {latest_revision}.")


@database.command("compact")
def database_compact() -> None:
    """
    Reclaim the space left by deleted rows.
    """

    size_before = settings.database.path.stat().st_size
    compact_sqlite_database(settings.database.path)
    size_after = settings.database.path.stat().st_size
    click.echo(f"Compacted {settings.database.path}: {size_before:,} -> {size_after:,} bytes.")
