# spdx-license-identifier: mit
"""json registry file loader

layout:
    {
      "addresses": {"0xabc...": {"label": "Ops multisig", "category": "multisig", "status": "active"}},
      "roles": ["MAINTENANCE_ROLE", ...] | {"0x<hash>": "MAINTENANCE_ROLE"},
      "contracts": {"mainnet": {"DataRegistry": "0x..."}, "moksha": {...}}
    }
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from eth_utils import to_checksum_address

from ..errors import RegistryLoadError
from ..interfaces import (
    ADDRESS_STATUS_ACTIVE,
    ADDRESS_STATUS_DEACTIVATED,
    ADDRESS_STATUS_DEPRECATED,
    AddressInfo,
    ContractConfig,
)
from ..utils.validation import is_valid_address
from .static import (
    Registries,
    StaticAddressRegistry,
    StaticContractRegistry,
    StaticRoleRegistry,
    role_hash,
)

_VALID_STATUSES = {ADDRESS_STATUS_ACTIVE, ADDRESS_STATUS_DEACTIVATED, ADDRESS_STATUS_DEPRECATED}


def _checksum(address: Any, where: str) -> str:
    if not is_valid_address(address):
        raise RegistryLoadError(f"{where}: invalid address {address!r}")
    return to_checksum_address(address)


def _parse_addresses(raw: Any) -> Dict[str, AddressInfo]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise RegistryLoadError("'addresses' must be an object")
    parsed: Dict[str, AddressInfo] = {}
    for address, entry in raw.items():
        checksummed = _checksum(address, "addresses")
        if isinstance(entry, str):
            parsed[checksummed] = AddressInfo(label=entry)
            continue
        if not isinstance(entry, dict) or not entry.get("label"):
            raise RegistryLoadError(f"addresses: entry for {address} needs a label")
        status = entry.get("status", ADDRESS_STATUS_ACTIVE)
        if status not in _VALID_STATUSES:
            raise RegistryLoadError(f"addresses: unknown status {status!r} for {address}")
        parsed[checksummed] = AddressInfo(
            label=entry["label"],
            category=entry.get("category", "team"),
            status=status,
        )
    return parsed


def _parse_roles(raw: Any) -> Dict[str, str]:
    if raw is None:
        return {}
    if isinstance(raw, list):
        return {role_hash(name): name for name in raw if isinstance(name, str)}
    if isinstance(raw, dict):
        roles = {}
        for hash_value, name in raw.items():
            if not (isinstance(hash_value, str) and hash_value.startswith("0x") and len(hash_value) == 66):
                raise RegistryLoadError(f"roles: invalid role hash {hash_value!r}")
            roles[hash_value.lower()] = str(name)
        return roles
    raise RegistryLoadError("'roles' must be a list of names or an object of hash -> name")


def _parse_contracts(raw: Any) -> Dict[str, List[ContractConfig]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise RegistryLoadError("'contracts' must be an object keyed by network")
    parsed: Dict[str, List[ContractConfig]] = {}
    for network, entries in raw.items():
        if not isinstance(entries, dict):
            raise RegistryLoadError(f"contracts.{network} must map names to addresses")
        parsed[network] = [
            ContractConfig(name=name, address=_checksum(address, f"contracts.{network}.{name}"))
            for name, address in entries.items()
        ]
    return parsed


def registries_from_dict(data: Dict[str, Any]) -> Registries:
    if not isinstance(data, dict):
        raise RegistryLoadError("registry document must be an object")
    return Registries(
        addresses=StaticAddressRegistry(_parse_addresses(data.get("addresses"))),
        roles=StaticRoleRegistry(_parse_roles(data.get("roles"))),
        contracts=StaticContractRegistry(_parse_contracts(data.get("contracts"))),
    )


@lru_cache(maxsize=8)
def load_registries(path: str) -> Registries:
    registry_path = Path(path)
    if not registry_path.exists():
        raise RegistryLoadError(f"registry file not found: {registry_path}")
    try:
        data = json.loads(registry_path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise RegistryLoadError(f"registry file is not valid JSON: {e}") from e
    return registries_from_dict(data)
