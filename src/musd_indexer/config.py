import os
import tomllib
from pathlib import Path
from typing import Annotated

import tomlkit
from eth_utils.address import to_normalized_address
from pydantic import BaseModel, HttpUrl, PlainSerializer, WebsocketUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from musd_indexer.logging import logger

CONFIG_DIR = Path(
    os.environ.get(
        "MUSD_INDEXER_CONFIG_DIR",
        Path.home() / ".config" / "musd_indexer",
    )
)
CONFIG_FILE = CONFIG_DIR / "config.toml"
DB_PATH = CONFIG_DIR / "musd_indexer.db"


class DatabaseSettings(BaseModel):
    # Serialize the path as a string representation of the absolute path
    path: Annotated[
        Path,
        PlainSerializer(lambda path: str(path.absolute()), return_type=str),
    ]


class ContractSettings(BaseModel):
    """
    Addresses of the contracts that emit the indexed events. Unset contracts are not fetched.
    """

    musd: str | None = None
    rwa_pool_factory: str | None = None
    superstake: str | None = None

    @field_validator("musd", "rwa_pool_factory", "superstake", mode="after")
    @classmethod
    def normalize_address(cls, address: str | None) -> str | None:
        return None if address is None else to_normalized_address(address)


class IndexerSettings(BaseModel):
    # The first block to fetch when the database has no checkpoint
    start_block: int = 0

    # A SuperStake position re-opened after a full close keeps its original open block and
    # timestamp unless this is set
    reset_open_on_reopen: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MUSD_INDEXER_")

    database: DatabaseSettings
    chain_id: int = 1
    rpc: (
        Annotated[
            HttpUrl | WebsocketUrl,
            PlainSerializer(str, return_type=str),
        ]
        | Annotated[
            Path,
            PlainSerializer(lambda path: str(path.absolute()), return_type=str),
        ]
        | None
    ) = None
    contracts: ContractSettings = ContractSettings()
    indexer: IndexerSettings = IndexerSettings()

    @field_validator("rpc", mode="after")
    @classmethod
    def validate_path(
        cls,
        endpoint: HttpUrl | WebsocketUrl | Path | None,
    ) -> HttpUrl | WebsocketUrl | Path | None:
        """
        Validate the endpoint.

        This will convert a file path to an absolute reference, leaving HTTP and WS URLs as-is.
        """

        return endpoint.expanduser().absolute() if isinstance(endpoint, Path) else endpoint


def load_config_from_file(config_path: Path) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings) -> None:
    CONFIG_FILE.write_text(
        tomlkit.dumps(
            config.model_dump(exclude_none=True),
        ),
    )


if not CONFIG_DIR.exists():
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created a configuration directory at {CONFIG_DIR}.")

if CONFIG_FILE.exists():
    settings = load_config_from_file(CONFIG_FILE)
else:
    settings = Settings(
        database=DatabaseSettings(
            path=DB_PATH,
        ),
    )

    save_config_to_file(settings)
    logger.info(f"Created a configuration file at {CONFIG_FILE}.")

    if not settings.database.path.exists():
        from musd_indexer.database.operations import create_new_sqlite_database

        create_new_sqlite_database(db_path=settings.database.path)
