# spdx-license-identifier: mit
"""per-network chain settings"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import UnknownNetworkError

# vana deploys multicall3 at a non-standard address, same on both networks
VANA_MULTICALL3_ADDRESS = "0xD8d2dFca27E8797fd779F8547166A2d3B29d360E"


@dataclass(frozen=True)
class NetworkCfg:
    name: str
    chain_id: int
    rpc_env: str
    default_rpc: str
    explorer_base: str
    multicall_address: str

    @property
    def explorer_api(self) -> str:
        return f"{self.explorer_base.rstrip('/')}/api"

    @property
    def chain_id_str(self) -> str:
        return str(self.chain_id)


NETWORKS = {
    "mainnet": NetworkCfg(
        "mainnet",
        1480,
        "VANA_MAINNET_RPC_URL",
        "https://rpc.vana.org",
        "https://vanascan.io",
        VANA_MULTICALL3_ADDRESS,
    ),
    "moksha": NetworkCfg(
        "moksha",
        14800,
        "VANA_MOKSHA_RPC_URL",
        "https://rpc.moksha.vana.org",
        "https://moksha.vanascan.io",
        VANA_MULTICALL3_ADDRESS,
    ),
}

# network name aliases
NETWORK_ALIASES = {
    "vana": "mainnet",
    "main": "mainnet",
    "testnet": "moksha",
    "1480": "mainnet",
    "14800": "moksha",
}


def normalize_network(network: str) -> str:
    """Normalize network name using aliases."""
    key = network.strip().lower()
    return NETWORK_ALIASES.get(key, key)


def get_network(network: str) -> NetworkCfg:
    key = normalize_network(network)
    if key not in NETWORKS:
        raise UnknownNetworkError(f"Unsupported network '{network}'")
    return NETWORKS[key]


def resolve_rpc(network: str) -> str:
    """RPC endpoint for a network, env override first."""
    cfg = get_network(network)
    return os.environ.get(cfg.rpc_env, "") or cfg.default_rpc
