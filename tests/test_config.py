from pathlib import Path

import pydantic
import pytest

import musd_indexer.config
from musd_indexer.config import (
    ContractSettings,
    DatabaseSettings,
    Settings,
    load_config_from_file,
    save_config_to_file,
    settings,
)

from conftest import FACTORY_ADDRESS, MUSD_ADDRESS


def test_default_settings_created_on_import():
    assert musd_indexer.config.CONFIG_FILE.exists()
    assert settings.database.path.exists()
    assert settings.rpc is None
    assert settings.indexer.start_block == 0
    assert settings.indexer.reset_open_on_reopen is False


def test_contract_addresses_are_normalized():
    contracts = ContractSettings(musd="0x" + "AB" * 20)
    assert contracts.musd == "0x" + "ab" * 20
    assert contracts.superstake is None

    with pytest.raises(pydantic.ValidationError):
        ContractSettings(musd="not an address")


def test_rpc_path_is_made_absolute(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    config = Settings(
        database=DatabaseSettings(path=tmp_path / "db.sqlite"),
        rpc=Path("node.ipc"),
    )
    assert config.rpc == tmp_path / "node.ipc"


def test_save_and_load_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    config_file = tmp_path / "config.toml"
    monkeypatch.setattr(musd_indexer.config, "CONFIG_FILE", config_file)

    config = Settings.model_validate(
        {
            "database": {"path": tmp_path / "db.sqlite"},
            "chain_id": 5000,
            "rpc": "http://localhost:8545",
            "contracts": {"musd": MUSD_ADDRESS, "rwa_pool_factory": FACTORY_ADDRESS},
            "indexer": {"start_block": 1_234, "reset_open_on_reopen": True},
        }
    )
    save_config_to_file(config)

    assert "superstake" not in config_file.read_text()

    loaded = load_config_from_file(config_file)
    assert loaded.chain_id == 5000
    assert str(loaded.rpc) == str(config.rpc)
    assert loaded.database.path == tmp_path / "db.sqlite"
    assert loaded.contracts.musd == MUSD_ADDRESS
    assert loaded.contracts.rwa_pool_factory == FACTORY_ADDRESS
    assert loaded.contracts.superstake is None
    assert loaded.indexer.start_block == 1_234
    assert loaded.indexer.reset_open_on_reopen is True
