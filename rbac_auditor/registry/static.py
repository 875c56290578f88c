"""in-memory registries with case-insensitive lookups"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from eth_utils import keccak

from ..interfaces import (
    AddressInfo,
    ContractConfig,
    IAddressRegistry,
    IContractRegistry,
    IRoleRegistry,
)
from ..models.audit import DEFAULT_ADMIN_ROLE_HASH, OWNER_ROLE_HASH, OWNER_ROLE_NAME

logger = logging.getLogger(__name__)

ACCESS_CONTROL_FUNCTIONS = ("hasRole", "getRoleAdmin", "grantRole", "revokeRole")


def role_hash(role_name: str) -> str:
    """keccak256 of the role name, as solidity computes it"""
    return "0x" + keccak(text=role_name).hex()


def has_access_control(abi: Iterable[Mapping[str, Any]]) -> bool:
    names = {item.get("name") for item in abi if item.get("type") == "function"}
    return all(fn in names for fn in ACCESS_CONTROL_FUNCTIONS)


def discover_role_names(abi: Iterable[Mapping[str, Any]]) -> List[str]:
    """public constant getters named *_ROLE"""
    found = []
    for item in abi:
        if (
            item.get("type") == "function"
            and str(item.get("name", "")).endswith("_ROLE")
            and item.get("stateMutability") == "view"
            and not item.get("inputs")
        ):
            found.append(item["name"])
    return found


class StaticAddressRegistry(IAddressRegistry):

    def __init__(self, addresses: Optional[Mapping[str, AddressInfo]] = None):
        self._addresses: Dict[str, AddressInfo] = {}
        self._original: Dict[str, str] = {}
        for address, info in (addresses or {}).items():
            self._addresses[address.lower()] = info
            self._original[address.lower()] = address

    def get_info(self, address: str) -> Optional[AddressInfo]:
        if not address:
            return None
        return self._addresses.get(address.lower())

    def known_addresses(self) -> Dict[str, AddressInfo]:
        return {self._original[key]: info for key, info in self._addresses.items()}


class StaticRoleRegistry(IRoleRegistry):

    def __init__(self, roles: Optional[Mapping[str, str]] = None, include_builtin: bool = True):
        self._roles: Dict[str, str] = {}
        if include_builtin:
            self._roles[DEFAULT_ADMIN_ROLE_HASH] = "DEFAULT_ADMIN_ROLE"
            self._roles[OWNER_ROLE_HASH] = OWNER_ROLE_NAME
        for hash_value, name in (roles or {}).items():
            self._roles.setdefault(hash_value.lower(), name)

    @classmethod
    def from_role_names(cls, names: Iterable[str]) -> "StaticRoleRegistry":
        return cls({role_hash(name): name for name in names})

    @classmethod
    def from_abis(cls, abis: Mapping[str, Iterable[Mapping[str, Any]]]) -> "StaticRoleRegistry":
        """discover roles from access-control contract ABIs"""
        roles: Dict[str, str] = {}
        for raw_abi in abis.values():
            abi = list(raw_abi)
            if not has_access_control(abi):
                continue
            for name in discover_role_names(abi):
                roles.setdefault(role_hash(name), name)
        registry = cls(roles)
        logger.debug("discovered %d roles from %d ABIs", len(registry.known_roles()), len(abis))
        return registry

    def get_role_name(self, role_hash_value: str) -> Optional[str]:
        if not role_hash_value:
            return None
        return self._roles.get(role_hash_value.lower())

    def known_roles(self) -> Dict[str, str]:
        return dict(self._roles)


class StaticContractRegistry(IContractRegistry):

    def __init__(self, contracts: Optional[Mapping[str, Iterable[ContractConfig]]] = None):
        self._contracts: Dict[str, List[ContractConfig]] = {
            network: list(items) for network, items in (contracts or {}).items()
        }

    @classmethod
    def from_abis(
        cls,
        network_addresses: Mapping[str, Mapping[str, str]],
        abis: Mapping[str, Iterable[Mapping[str, Any]]],
    ) -> "StaticContractRegistry":
        """keep only contracts whose ABI exposes the AccessControl surface"""
        eligible = {name for name, abi in abis.items() if has_access_control(list(abi))}
        contracts: Dict[str, List[ContractConfig]] = {}
        for network, addresses in network_addresses.items():
            contracts[network] = [
                ContractConfig(name=name, address=address)
                for name, address in addresses.items()
                if name in eligible
            ]
        return cls(contracts)

    def auditable_contracts(self, network: str) -> List[ContractConfig]:
        return [c for c in self._contracts.get(network, []) if c.has_access_control]


@dataclass(frozen=True)
class Registries:
    """registry bundle injected into pipeline components"""
    addresses: IAddressRegistry
    roles: IRoleRegistry
    contracts: IContractRegistry

    @classmethod
    def empty(cls) -> "Registries":
        return cls(StaticAddressRegistry(), StaticRoleRegistry(), StaticContractRegistry())

    def best_address_label(self, address: str, network: str) -> Optional[str]:
        """manual label first, then contract name"""
        label = self.addresses.get_label(address)
        if label:
            return label
        return self.contracts.get_contract_name(address, network)

    def contract_name(self, address: str, network: str, default: str = "Unknown Contract") -> str:
        return self.contracts.get_contract_name(address, network) or default


def contract_display_name(contract_name: str) -> str:
    """DataRegistry -> Data Registry"""
    words: List[str] = []
    current = ""
    for ch in contract_name:
        if ch.isupper() and current and not current[-1].isupper():
            words.append(current)
            current = ch
        else:
            current += ch
    if current:
        words.append(current)
    return " ".join(words)
