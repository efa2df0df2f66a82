import click


@click.group()
@click.version_option()
def cli() -> None: ...


from . import config, database, indexer, show  # noqa: F401, E402
