from decimal import Decimal
from typing import Any, TypeVar

from hexbytes import HexBytes
from sqlalchemy import select
from sqlalchemy.orm import Session

from musd_indexer.constants import GLOBAL_STATS_ID, ZERO_ADDRESS
from musd_indexer.database.models import (
    Base,
    DataSourceTable,
    IndexerCheckpointTable,
    LiquidityPositionTable,
    ProtocolStatsTable,
    RwaPoolTable,
    SuperStakePositionTable,
    UserTable,
)
from musd_indexer.logging import logger

EntityT = TypeVar("EntityT", bound=Base)


def _default_values(table: type[Base], key: str) -> dict[str, Any]:
    """
    The zero value for a newly created record of the given table.
    """

    if table is UserTable:
        return {
            "id": key,
            "musd_balance": 0,
            "debt_balance": 0,
            "collateral_balance": 0,
            "health_factor": Decimal(0),
            "superstake_position_id": None,
        }
    if table is ProtocolStatsTable:
        return {
            "id": key,
            "total_supply": 0,
            "total_debt": 0,
            "total_collateral": 0,
            "active_users": 0,
            "total_pools": 0,
            "total_volume": 0,
            "total_swaps": 0,
            "collateral_asset": None,
            "mint_percentage_bps": 0,
            "collateral_price_usd": 0,
            "min_health_factor": 0,
            "superstake_musd": None,
            "superstake_meth": None,
            "superstake_swapper": None,
            "superstake_max_loops": 0,
            "updated_at_block": 0,
            "updated_at_timestamp": 0,
        }
    if table is RwaPoolTable:
        return {
            "id": key,
            "musd_token": ZERO_ADDRESS,
            "rwa_token": ZERO_ADDRESS,
            "asset_symbol": "",
            "verifier": ZERO_ADDRESS,
            "policy_id": HexBytes(b"").to_0x_hex(),
            "reserve_musd": 0,
            "reserve_rwa": 0,
            "total_liquidity": 0,
            "total_volume": 0,
            "total_swaps": 0,
            "created_at_block": 0,
            "created_at_timestamp": 0,
        }
    if table is LiquidityPositionTable:
        pool_id, user_id = key.split("-")
        return {
            "id": key,
            "pool_id": pool_id,
            "user_id": user_id,
            "liquidity_provided": 0,
            "amount_musd": 0,
            "amount_rwa": 0,
            "block_number": 0,
            "timestamp": 0,
        }
    if table is SuperStakePositionTable:
        return {
            "id": key,
            "user_id": key,
            "collateral_locked": 0,
            "total_debt_minted": 0,
            "loops": 0,
            "active": False,
            "opened_at_block": None,
            "opened_at_timestamp": None,
            "updated_at_block": 0,
            "updated_at_timestamp": 0,
            "closed_at_block": None,
            "closed_at_timestamp": None,
        }

    msg = f"No default value is defined for {table.__name__}"
    raise ValueError(msg)


class EntityStore:
    """
    Keyed access to the derived entities, backed by a SQLAlchemy session.

    Every save is flushed immediately, so a load issued after a save in the same session always
    observes the saved values.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def load(self, table: type[EntityT], key: str) -> EntityT | None:
        return self.session.get(table, key)

    def create_default(self, table: type[EntityT], key: str) -> EntityT:
        entity = table(**_default_values(table, key))
        self.session.add(entity)
        return entity

    def save(self, entity: Base) -> None:
        self.session.add(entity)
        self.session.flush()

    def _get_or_create(self, table: type[EntityT], key: str) -> EntityT:
        entity = self.load(table, key)
        if entity is None:
            entity = self.create_default(table, key)
            self.save(entity)
        return entity

    def get_or_create_user(self, user_address: str) -> UserTable:
        return self._get_or_create(UserTable, user_address)

    def get_or_create_protocol_stats(self) -> ProtocolStatsTable:
        return self._get_or_create(ProtocolStatsTable, GLOBAL_STATS_ID)

    def get_or_create_pool(self, pool_address: str) -> RwaPoolTable:
        return self._get_or_create(RwaPoolTable, pool_address)

    def get_or_create_liquidity_position(
        self,
        pool_address: str,
        user_address: str,
    ) -> LiquidityPositionTable:
        return self._get_or_create(LiquidityPositionTable, f"{pool_address}-{user_address}")

    def get_or_create_superstake_position(self, user_address: str) -> SuperStakePositionTable:
        return self._get_or_create(SuperStakePositionTable, user_address)

    def get_or_create_checkpoint(self, chain_id: int) -> IndexerCheckpointTable:
        checkpoint = self.session.scalar(
            select(IndexerCheckpointTable).where(IndexerCheckpointTable.chain_id == chain_id)
        )
        if checkpoint is None:
            checkpoint = IndexerCheckpointTable(
                chain_id=chain_id,
                last_update_block=None,
                last_block_number=None,
                last_log_index=None,
            )
            self.save(checkpoint)
        return checkpoint

    def register_data_source(self, address: str, template: str, block_number: int) -> None:
        """
        Record a contract whose events must be fetched by subsequent updates.
        """

        if self.load(DataSourceTable, address) is not None:
            return

        self.save(
            DataSourceTable(
                id=address,
                template=template,
                created_at_block=block_number,
            )
        )
        logger.info(f"Registered {template} data source at {address} (block {block_number})")

    def get_data_sources(self, template: str) -> list[DataSourceTable]:
        return list(
            self.session.scalars(
                select(DataSourceTable)
                .where(DataSourceTable.template == template)
                .order_by(DataSourceTable.created_at_block)
            ).all()
        )
