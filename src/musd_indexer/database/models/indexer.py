from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .types import PrimaryKeyStr


class DataSourceTable(Base):
    """
    A contract registered at runtime whose events are fetched by subsequent updates.
    """

    __tablename__ = "data_sources"

    # lowercase hex address of the contract
    id: Mapped[PrimaryKeyStr]
    template: Mapped[str]
    created_at_block: Mapped[int]


class IndexerCheckpointTable(Base):
    """
    The position of the last reduced event and the last fully processed block for a chain.
    """

    __tablename__ = "indexer_checkpoints"

    chain_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    last_update_block: Mapped[int | None]
    last_block_number: Mapped[int | None]
    last_log_index: Mapped[int | None]
