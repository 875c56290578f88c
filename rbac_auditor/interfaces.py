"""Interfaces for dependency injection and testability."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


ADDRESS_STATUS_ACTIVE = "active"
ADDRESS_STATUS_DEACTIVATED = "deactivated"
ADDRESS_STATUS_DEPRECATED = "deprecated"


@dataclass(frozen=True)
class AddressInfo:
    """Known address entry."""
    label: str
    category: str = "team"
    status: str = ADDRESS_STATUS_ACTIVE


@dataclass(frozen=True)
class ContractConfig:
    """Auditable contract on one network."""
    name: str
    address: str
    has_access_control: bool = True


@dataclass(frozen=True)
class ContractCall:
    """Single read-only call packed into a batched read."""
    address: str
    function_signature: str
    function_name: str
    args: Tuple[Any, ...] = ()
    output_types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CallResult:
    """Outcome of one call in a batched read."""
    status: str
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass
class TransactionReceipt:
    tx_hash: str
    block_number: int
    success: bool = True
    error: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


class IAddressRegistry(ABC):
    """Known address registry (case-insensitive)."""

    @abstractmethod
    def get_info(self, address: str) -> Optional[AddressInfo]:
        """Look up an address."""
        pass

    @abstractmethod
    def known_addresses(self) -> Dict[str, AddressInfo]:
        """All known addresses."""
        pass

    def get_label(self, address: str) -> Optional[str]:
        info = self.get_info(address)
        return info.label if info else None

    def is_known(self, address: str) -> bool:
        return self.get_info(address) is not None

    def is_deactivated(self, address: str) -> bool:
        info = self.get_info(address)
        return info is not None and info.status == ADDRESS_STATUS_DEACTIVATED

    def is_deprecated(self, address: str) -> bool:
        info = self.get_info(address)
        return info is not None and info.status == ADDRESS_STATUS_DEPRECATED


class IRoleRegistry(ABC):
    """Role hash -> name registry."""

    @abstractmethod
    def get_role_name(self, role_hash: str) -> Optional[str]:
        """Name for a role hash, None when unknown."""
        pass

    @abstractmethod
    def known_roles(self) -> Dict[str, str]:
        """All known role hashes."""
        pass

    def is_known_role(self, role_hash: str) -> bool:
        return self.get_role_name(role_hash) is not None

    def display_name(self, role_hash: str) -> str:
        return self.get_role_name(role_hash) or role_hash


class IContractRegistry(ABC):
    """Per-network auditable contract registry."""

    @abstractmethod
    def auditable_contracts(self, network: str) -> List[ContractConfig]:
        """Contracts that implement AccessControl on a network."""
        pass

    def get_contract(self, name: str, network: str) -> Optional[ContractConfig]:
        for contract in self.auditable_contracts(network):
            if contract.name == name:
                return contract
        return None

    def get_contract_name(self, address: str, network: str) -> Optional[str]:
        target = address.lower()
        for contract in self.auditable_contracts(network):
            if contract.address.lower() == target:
                return contract.name
        return None

    def is_known_contract(self, address: str, network: str) -> bool:
        return self.get_contract_name(address, network) is not None


class ILogSource(ABC):
    """Historical log query endpoint."""

    @abstractmethod
    async def get_logs(self, network: str, address: str, topic0: str) -> List[Dict[str, Any]]:
        """Raw log records for one (contract, event) pair."""
        pass


class IBatchReader(ABC):
    """Batched read-only calls in one round trip."""

    @abstractmethod
    async def read(self, network: str, calls: List[ContractCall]) -> List[CallResult]:
        """One result per call, in input order."""
        pass


class ITransactionSender(ABC):
    """Signs and submits remediation transactions."""

    @abstractmethod
    async def simulate(self, to: str, method: str, parameters: Dict[str, str]) -> None:
        """Dry-run the call; raise on revert."""
        pass

    @abstractmethod
    async def send(self, to: str, method: str, parameters: Dict[str, str]) -> str:
        """Sign and submit, return the transaction hash."""
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Block until the transaction is mined."""
        pass

    @property
    @abstractmethod
    def sender_address(self) -> str:
        """Address that signs."""
        pass
