from typing import cast

import click
import tqdm
from web3 import Web3
from web3.types import BlockParams

from musd_indexer.cli import cli
from musd_indexer.cli.utils import get_web3_from_config
from musd_indexer.config import settings
from musd_indexer.database import db_session
from musd_indexer.database.models import IndexerCheckpointTable
from musd_indexer.indexer import update_indexer
from musd_indexer.libraries import to_percentage
from musd_indexer.logging import logger
from musd_indexer.queries import count_active_users, get_protocol_stats

BLOCK_TAGS = {"latest", "earliest", "pending", "safe", "finalized"}


def parse_block_identifier(to_block: str, w3: Web3) -> int:
    """
    Resolve a block number, or a block tag with an optional offset (e.g. 'latest:-64'), to a block
    number.
    """

    if to_block.isdigit():
        return int(to_block)

    if ":" in to_block:
        parts = to_block.split(":", 1)
        block_tag, offset = cast("tuple[BlockParams,str]", parts)
        block_offset = int(offset.strip())
    else:
        block_tag = cast("BlockParams", to_block)
        block_offset = 0

    if block_tag not in BLOCK_TAGS:
        msg = f"Invalid block tag: {block_tag}"
        raise ValueError(msg)

    return w3.eth.get_block(block_tag)["number"] + block_offset


@cli.command(
    "update",
    help="Fetch and process new events from the configured contracts.",
)
@click.option(
    "--chunk",
    "chunk_size",
    default=10_000,
    show_default=True,
    help="The maximum number of blocks to process before committing changes to the database.",
)
@click.option(
    "--to-block",
    "to_block",
    default="latest:-64",
    show_default=True,
    help=(
        "The last block in the update range. Must be a block number or a valid block identifier: "
        "'earliest', 'finalized', 'safe', 'latest', 'pending'. An identifier can be given with an "
        "optional offset, e.g. 'latest:-64' stops 64 blocks before the chain tip, "
        "'safe:128' stops 128 blocks after the last 'safe' block."
    ),
)
@click.option(
    "--stop-after-one-chunk",
    "stop_after_one_chunk",
    is_flag=True,
    default=False,
    show_default=True,
    help="Stop processing after the first chunk.",
)
@click.option(
    "--no-progress",
    "no_progress",
    is_flag=True,
    default=False,
    show_default=True,
    help="Disable progress bars.",
)
def indexer_update(
    *,
    chunk_size: int,
    to_block: str,
    stop_after_one_chunk: bool,
    no_progress: bool,
) -> None:
    """
    Process events from the block after the last update to the specified block. Changes are
    committed after each chunk, so an interrupted update resumes from the last committed chunk.

    Args:
        chunk_size: Maximum number of blocks to process before committing changes.
        to_block: Target block identifier (e.g., 'latest', 'latest:-64', 'finalized:128').
        stop_after_one_chunk: If True, stop after processing the first chunk.
        no_progress: If True, disable progress bars.
    """

    w3 = get_web3_from_config()

    with db_session() as session:
        checkpoint = session.get(IndexerCheckpointTable, settings.chain_id)
        initial_start_block = working_start_block = (
            settings.indexer.start_block
            if checkpoint is None or checkpoint.last_update_block is None
            else checkpoint.last_update_block + 1
        )

        last_block = parse_block_identifier(to_block, w3)

        current_block_number = w3.eth.get_block_number()
        if last_block > current_block_number:
            msg = f"{to_block} is ahead of the current chain tip."
            raise ValueError(msg)

        if initial_start_block > last_block:
            click.echo(f"Chain {settings.chain_id} has not advanced since the last update.")
            return

        block_pbar = tqdm.tqdm(
            total=last_block - initial_start_block + 1,
            bar_format="{desc} {percentage:3.1f}% |{bar}|",
            leave=False,
            disable=no_progress,
        )

        while True:
            working_end_block = min(last_block, working_start_block + chunk_size - 1)
            assert working_end_block >= working_start_block

            block_pbar.set_description(
                f"Processing block range {working_start_block:,} -> {working_end_block:,}"
            )
            block_pbar.refresh()

            try:
                update_indexer(
                    w3=w3,
                    session=session,
                    settings=settings,
                    start_block=working_start_block,
                    end_block=working_end_block,
                    no_progress=no_progress,
                )
            except Exception:
                session.rollback()
                logger.exception(
                    f"Processing failed in block range {working_start_block}-{working_end_block}. "
                    "Changes for this range were not committed."
                )
                raise

            session.commit()

            block_pbar.n = working_end_block - initial_start_block + 1

            if working_end_block == last_block or stop_after_one_chunk:
                break
            working_start_block = working_end_block + 1

        block_pbar.close()


@cli.command("status")
def indexer_status() -> None:
    """
    Show the indexer position and the protocol totals.
    """

    with db_session() as session:
        checkpoint = session.get(IndexerCheckpointTable, settings.chain_id)
        if checkpoint is None or checkpoint.last_update_block is None:
            click.echo(f"Chain {settings.chain_id} has not been indexed.")
            return

        click.echo(f"Chain ID:              {settings.chain_id}")
        click.echo(f"Last update block:     {checkpoint.last_update_block}")
        click.echo(
            f"Last event:            block {checkpoint.last_block_number}, "
            f"log index {checkpoint.last_log_index}"
        )

        stats = get_protocol_stats(session)
        if stats is None:
            return

        click.echo(f"Total supply:          {stats.total_supply}")
        click.echo(f"Total debt:            {stats.total_debt}")
        click.echo(f"Total collateral:      {stats.total_collateral}")
        click.echo(
            f"Active users:          {stats.active_users} "
            f"(recount: {count_active_users(session)})"
        )
        click.echo(f"Pools:                 {stats.total_pools}")
        click.echo(f"Total volume:          {stats.total_volume}")
        click.echo(f"Total swaps:           {stats.total_swaps}")
        click.echo(f"Min health factor:     {to_percentage(stats.min_health_factor)}")
