import click

from musd_indexer.cli import cli
from musd_indexer.database import db_session
from musd_indexer.libraries import to_percentage
from musd_indexer.queries import (
    get_musd_position_history,
    get_pool,
    get_pool_swaps,
    get_protocol_stats,
    get_superstake_position,
    get_user,
    get_user_liquidity_positions,
)


@cli.group()
def show() -> None:
    """
    Display indexed entities
    """


@show.command("user")
@click.argument("address")
@click.option(
    "--history",
    "history",
    default=5,
    show_default=True,
    help="The number of recent position snapshots to display.",
)
def show_user(address: str, history: int) -> None:
    """
    Display the balances and positions for a user.
    """

    with db_session() as session:
        user = get_user(session, address)
        if user is None:
            click.echo(f"No record for user {address}.")
            return

        click.echo(f"User:               {user.id}")
        click.echo(f"mUSD balance:       {user.musd_balance}")
        click.echo(f"Debt:               {user.debt_balance}")
        click.echo(f"Collateral:         {user.collateral_balance}")
        click.echo(f"Health factor:      {to_percentage(user.health_factor)}")

        if (position := get_superstake_position(session, address)) is not None:
            click.echo(
                f"SuperStake:         {'active' if position.active else 'inactive'}, "
                f"collateral {position.collateral_locked}, debt {position.total_debt_minted}, "
                f"loops {position.loops}"
            )

        for liquidity_position in get_user_liquidity_positions(session, address):
            click.echo(
                f"Liquidity:          pool {liquidity_position.pool_id}, "
                f"{liquidity_position.liquidity_provided} shares "
                f"({liquidity_position.amount_musd} mUSD, {liquidity_position.amount_rwa} RWA)"
            )

        for snapshot in get_musd_position_history(session, address, limit=history):
            click.echo(
                f"  [{snapshot.last_updated_block}] {snapshot.event_type:<11} "
                f"collateral {snapshot.collateral_amount} ({snapshot.delta_collateral:+}), "
                f"debt {snapshot.debt_amount} ({snapshot.delta_debt:+})"
            )


@show.command("pool")
@click.argument("address")
@click.option(
    "--swaps",
    "swaps",
    default=5,
    show_default=True,
    help="The number of recent swaps to display.",
)
def show_pool(address: str, swaps: int) -> None:
    """
    Display the reserves and counters for an RWA pool.
    """

    with db_session() as session:
        pool = get_pool(session, address)
        if pool is None:
            click.echo(f"No record for pool {address}.")
            return

        click.echo(f"Pool:               {pool.id}")
        click.echo(f"Asset:              {pool.asset_symbol} ({pool.rwa_token})")
        click.echo(f"Policy ID:          {pool.policy_id}")
        click.echo(f"Reserve mUSD:       {pool.reserve_musd}")
        click.echo(f"Reserve RWA:        {pool.reserve_rwa}")
        click.echo(f"Total liquidity:    {pool.total_liquidity}")
        click.echo(f"Total volume:       {pool.total_volume}")
        click.echo(f"Total swaps:        {pool.total_swaps}")

        for swap in get_pool_swaps(session, address, limit=swaps):
            click.echo(
                f"  [{swap.block_number}] {swap.user_id} {swap.amount_in} {swap.token_in} -> "
                f"{swap.amount_out} {swap.token_out}"
            )


@show.command("stats")
def show_stats() -> None:
    """
    Display the protocol totals and configuration.
    """

    with db_session() as session:
        stats = get_protocol_stats(session)
        if stats is None:
            click.echo("No protocol stats have been recorded.")
            return

        click.echo(f"Total supply:          {stats.total_supply}")
        click.echo(f"Total debt:            {stats.total_debt}")
        click.echo(f"Total collateral:      {stats.total_collateral}")
        click.echo(f"Active users:          {stats.active_users}")
        click.echo(f"Pools:                 {stats.total_pools}")
        click.echo(f"Total volume:          {stats.total_volume}")
        click.echo(f"Total swaps:           {stats.total_swaps}")
        click.echo(f"Collateral asset:      {stats.collateral_asset}")
        click.echo(f"Collateral price:      {stats.collateral_price_usd}")
        click.echo(f"Mint percentage (bps): {stats.mint_percentage_bps}")
        click.echo(f"Min health factor:     {to_percentage(stats.min_health_factor)}")
        click.echo(f"SuperStake max loops:  {stats.superstake_max_loops}")
        click.echo(f"Updated at block:      {stats.updated_at_block}")
