from pathlib import Path

from pydantic import HttpUrl, WebsocketUrl
from web3 import HTTPProvider, IPCProvider, LegacyWebSocketProvider, Web3

from musd_indexer.config import CONFIG_FILE, settings
from musd_indexer.exceptions import ConfigurationError


def get_web3_from_config() -> Web3:
    match endpoint := settings.rpc:
        case HttpUrl():
            w3 = Web3(HTTPProvider(str(endpoint)))
        case WebsocketUrl():
            w3 = Web3(LegacyWebSocketProvider(str(endpoint)))
        case Path():
            w3 = Web3(IPCProvider(str(endpoint)))
        case None:
            raise ConfigurationError(setting="rpc")

    if w3.eth.chain_id != settings.chain_id:
        msg = (
            f"The chain ID ({w3.eth.chain_id}) at endpoint {endpoint} does not match "
            f"the chain ID ({settings.chain_id}) defined in config file {CONFIG_FILE}."
        )
        raise ValueError(msg)

    return w3
